"""Tests for the mtime-checked metadata cache."""

import asyncio
import os
import threading
from unittest.mock import Mock

import pytest
from anyio import to_thread

from homestream.core.errors import MetadataParseError, SourceNotFoundError
from homestream.domain.library.metadata_cache import CACHE_FORMAT_VERSION, MetadataCache
from homestream.domain.library.models import AudioMetadata, Picture
from homestream.domain.library.storage import JsonDocumentStore


@pytest.fixture
def extractor():
    return Mock(
        return_value=AudioMetadata(
            title="Night Drive",
            artist="Kavinsky",
            album="OutRun",
            duration=192.5,
            picture=Picture("image/png", b"\x89PNG"),
        )
    )


@pytest.fixture
def documents(cache_dir):
    return JsonDocumentStore(cache_dir / "metadata.json")


@pytest.fixture
def track(music_dir):
    path = music_dir / "night.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 64)
    return path


@pytest.fixture
def cache(content_store, documents, extractor):
    return MetadataCache(content_store, documents, extractor=extractor)


@pytest.mark.anyio
async def test_repeated_get_extracts_once(cache, extractor, track):
    first = await cache.get(track.name)
    second = await cache.get(track.name)

    assert first == second
    assert extractor.call_count == 1
    assert first.title == "Night Drive"
    assert first.has_cover
    assert first.cover_ref == track.name
    assert first.duration == 192.5


@pytest.mark.anyio
async def test_mtime_change_triggers_one_reextraction(cache, extractor, track):
    await cache.get(track.name)
    stat = track.stat()
    os.utime(track, (stat.st_atime, stat.st_mtime + 60))

    await cache.get(track.name)
    await cache.get(track.name)

    assert extractor.call_count == 2


@pytest.mark.anyio
async def test_parse_failure_falls_back_to_filename(content_store, documents, track):
    cache = MetadataCache(
        content_store, documents, extractor=Mock(side_effect=MetadataParseError("bad"))
    )

    record = await cache.get(track.name)

    assert record.title == track.name
    assert record.artist == ""
    assert not record.has_cover
    assert record.cover_ref is None


@pytest.mark.anyio
async def test_missing_file_raises(cache):
    with pytest.raises(SourceNotFoundError):
        await cache.get("ghost.mp3")


@pytest.mark.anyio
async def test_invalidate_drops_record(cache, extractor, track):
    await cache.get(track.name)
    await cache.invalidate(track.name)

    assert cache.peek(track.name) is None
    await cache.get(track.name)
    assert extractor.call_count == 2


@pytest.mark.anyio
async def test_records_persist_across_instances(content_store, documents, extractor, track):
    cache = MetadataCache(content_store, documents, extractor=extractor)
    await cache.get(track.name)
    await cache.flush()

    reloaded = MetadataCache(content_store, documents, extractor=extractor)
    assert reloaded.load() == 1
    await reloaded.get(track.name)

    assert extractor.call_count == 1
    assert documents.load()["version"] == CACHE_FORMAT_VERSION


def test_load_ignores_other_versions(content_store, documents, extractor):
    documents.save({"version": 999, "tracks": {"a.mp3": {"name": "a.mp3", "title": "A"}}})
    cache = MetadataCache(content_store, documents, extractor=extractor)

    assert cache.load() == 0
    assert len(cache) == 0


@pytest.mark.anyio
async def test_duration_lookup(cache, track):
    assert await cache.duration(track.name) == 192.5


@pytest.mark.anyio
async def test_invalidate_waits_for_inflight_get(content_store, documents, track):
    started = threading.Event()
    release = threading.Event()

    def slow_extract(path):
        started.set()
        release.wait(5)
        return AudioMetadata(title="Late")

    cache = MetadataCache(content_store, documents, extractor=slow_extract)
    pending = asyncio.create_task(cache.get(track.name))
    await to_thread.run_sync(started.wait, 5)

    dropping = asyncio.create_task(cache.invalidate(track.name))
    await asyncio.sleep(0.01)
    release.set()
    await asyncio.gather(pending, dropping)

    assert cache.peek(track.name) is None
    assert len(cache._locks) == 0


@pytest.mark.parametrize("tracks", [["a.mp3"], "a.mp3", None, 3])
def test_load_ignores_malformed_tracks(content_store, documents, extractor, tracks):
    documents.save({"version": CACHE_FORMAT_VERSION, "tracks": tracks})
    cache = MetadataCache(content_store, documents, extractor=extractor)

    assert cache.load() == 0
    assert len(cache) == 0
