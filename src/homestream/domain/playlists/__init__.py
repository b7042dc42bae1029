"""Playlists domain - the saved listing order."""

from .order import PlaylistOrderStore, sort_entries

__all__ = ["PlaylistOrderStore", "sort_entries"]
