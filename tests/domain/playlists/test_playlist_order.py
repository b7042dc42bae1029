"""Tests for the saved listing order."""

import json

from homestream.domain.playlists.order import PlaylistOrderStore, sort_entries


class TestSortEntries:
    def test_newest_first_without_order(self):
        entries = [("a", 1.0), ("b", 3.0), ("c", 2.0)]
        assert sort_entries(entries, None) == ["b", "c", "a"]

    def test_unlisted_files_first_then_saved_order(self):
        entries = [("a", 1.0), ("b", 2.0), ("new1", 5.0), ("new2", 9.0)]
        assert sort_entries(entries, ["b", "a"]) == ["new2", "new1", "b", "a"]

    def test_stale_names_in_order_ignored(self):
        entries = [("a", 1.0)]
        assert sort_entries(entries, ["gone", "a"]) == ["a"]

    def test_duplicate_names_use_first_position(self):
        entries = [("a", 1.0), ("b", 1.0)]
        assert sort_entries(entries, ["b", "a", "b"]) == ["b", "a"]

    def test_empty_order_means_all_unlisted(self):
        entries = [("a", 1.0), ("b", 2.0)]
        assert sort_entries(entries, []) == ["b", "a"]


class TestPlaylistOrderStore:
    def test_missing_file(self, tmp_path):
        assert PlaylistOrderStore(tmp_path / "playlist.json").load() is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "playlist.json"
        path.write_text("   \n")
        assert PlaylistOrderStore(path).load() is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "playlist.json"
        path.write_text("[not json")
        assert PlaylistOrderStore(path).load() is None

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "playlist.json"
        path.write_text('{"order": ["a"]}')
        assert PlaylistOrderStore(path).load() is None

    def test_save_and_load(self, tmp_path):
        store = PlaylistOrderStore(tmp_path / "playlist.json")
        store.save(["b.mp3", "歌.flac"])

        assert store.load() == ["b.mp3", "歌.flac"]
        assert json.loads((tmp_path / "playlist.json").read_text(encoding="utf-8")) == [
            "b.mp3",
            "歌.flac",
        ]
