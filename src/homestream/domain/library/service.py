"""
Library operations behind the HTTP routes.

Deleting or replacing a track fans out to every cache that holds state for
it. That fan-out runs inside the orchestrator's per-file lock so no transcode
can start against a file that is halfway gone.
"""

import asyncio
from typing import Any, AsyncIterator, Callable
from urllib.parse import quote

from anyio import to_thread
from loguru import logger

from homestream.core.errors import SourceNotFoundError
from homestream.domain.playlists.order import PlaylistOrderStore, sort_entries
from homestream.domain.transcode.orchestrator import TranscodeOrchestrator

from . import metadata as meta
from .content_store import ContentStore
from .cover_cache import CoverCache
from .metadata_cache import MetadataCache
from .models import AudioMetadata, FileStat, TrackRecord


def track_url(name: str) -> str:
    return f"/music/{quote(name, safe='')}"


def summarize(record: TrackRecord) -> dict[str, Any]:
    """Listing entry for one track."""
    return {
        "name": record.name,
        "url": track_url(record.name),
        "title": record.title or record.name,
        "artist": record.artist,
        "album": record.album,
        "has_cover": record.has_cover,
        "cover_id": record.cover_ref if record.has_cover else None,
    }


def describe(name: str, stat: FileStat, info: AudioMetadata) -> dict[str, Any]:
    """Detailed, display-ready audio info for one track."""
    return {
        "file_name": name,
        "file_size": stat.size,
        "file_size_formatted": meta.format_size(stat.size),
        "title": info.title or name,
        "artist": info.artist or "Unknown",
        "album": info.album or "Unknown",
        "year": info.year,
        "genre": info.genre or "Unknown",
        "format": info.container or "Unknown",
        "codec": info.codec or "Unknown",
        "duration": info.duration or 0,
        "duration_formatted": meta.format_duration(info.duration),
        "bitrate": info.bitrate or 0,
        "bitrate_formatted": meta.format_bitrate(info.bitrate),
        "sample_rate": info.sample_rate or 0,
        "sample_rate_formatted": meta.format_sample_rate(info.sample_rate),
        "channels": info.channels or 0,
        "channels_formatted": meta.channel_name(info.channels),
        "bits_per_sample": info.bits_per_sample or 0,
        "track_number": info.track_number,
        "disc_number": info.disc_number,
        "composer": info.composer,
        "comment": info.comment,
    }


class LibraryService:
    """Listing, info, upload and delete over the library components."""

    def __init__(
        self,
        store: ContentStore,
        metadata: MetadataCache,
        covers: CoverCache,
        orchestrator: TranscodeOrchestrator,
        playlist_order: PlaylistOrderStore,
        reader: Callable[[str], AudioMetadata] = meta.read_audio_metadata,
    ):
        self.store = store
        self.metadata = metadata
        self.covers = covers
        self.orchestrator = orchestrator
        self.playlist_order = playlist_order
        self.reader = reader

    async def list_tracks(self) -> list[dict[str, Any]]:
        entries = await self.store.list_entries()
        order = await to_thread.run_sync(self.playlist_order.load)
        names = sort_entries(entries, order)

        results = await asyncio.gather(
            *(self.metadata.get(name) for name in names), return_exceptions=True
        )
        tracks = []
        for name, result in zip(names, results):
            if isinstance(result, SourceNotFoundError):
                # Removed between the directory scan and the metadata read
                continue
            if isinstance(result, BaseException):
                raise result
            tracks.append(summarize(result))
        return tracks

    async def track_info(self, name: str) -> dict[str, Any]:
        """
        Raises:
            SourceNotFoundError: If the track does not exist
            MetadataParseError: If its tags cannot be read
        """
        stat = await self.store.stat(name)
        path = self.store.path_for(name)
        info = await to_thread.run_sync(self.reader, str(path))
        return describe(name, stat, info)

    async def get_order(self) -> list[str]:
        return await to_thread.run_sync(self.playlist_order.load) or []

    async def save_order(self, order: list[str]) -> None:
        await to_thread.run_sync(self.playlist_order.save, order)

    async def store_upload(self, name: str, chunks: AsyncIterator[bytes]) -> FileStat:
        """Save an uploaded track, dropping derived state of any file it replaces."""
        async with self.orchestrator.exclusive(name):
            replacing = await self.store.exists(name)
            await self.orchestrator.discard(name)
            stat = await self.store.save(name, chunks)
            await self.metadata.invalidate(name)
            await self.covers.invalidate(name)
        if replacing:
            logger.info(f"Replaced existing track: {name}")
        return stat

    async def delete_track(self, name: str) -> None:
        """Remove a track and everything derived from it.

        Raises:
            SourceNotFoundError: If the track does not exist
        """
        async with self.orchestrator.exclusive(name):
            if not await self.store.exists(name):
                raise SourceNotFoundError(name)
            await self.orchestrator.discard(name)
            await self.store.delete(name)
            await self.metadata.invalidate(name)
            await self.covers.invalidate(name)
        logger.info(f"Deleted track and cached state: {name}")
