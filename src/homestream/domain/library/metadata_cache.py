"""
Metadata Cache: filename -> TrackRecord with mtime-based coherence.

A record is served from memory only while its mtime_at_scan equals the
file's current mtime. Mutations are flushed to a JSON document by a
background task; losing the last flush just means the next read re-parses.
"""

import asyncio
from typing import Callable, Optional

from anyio import to_thread
from loguru import logger

from homestream.core.errors import MetadataParseError
from homestream.core.locks import KeyedLock

from .content_store import ContentStore
from .metadata import filename_defaults, read_audio_metadata
from .models import AudioMetadata, TrackRecord
from .storage import DocumentStore

CACHE_FORMAT_VERSION = 1


class MetadataCache:
    """Track listing metadata keyed by filename."""

    def __init__(
        self,
        store: ContentStore,
        documents: DocumentStore,
        extractor: Callable[[str], AudioMetadata] = read_audio_metadata,
    ):
        self.store = store
        self.documents = documents
        self.extractor = extractor
        self._records: dict[str, TrackRecord] = {}
        self._locks = KeyedLock()
        self._dirty = False
        self._flush_task: Optional[asyncio.Task] = None

    def load(self) -> int:
        """Populate memory from the persisted document. Returns records loaded."""
        document = self.documents.load()
        if document.get("version") != CACHE_FORMAT_VERSION:
            return 0
        tracks = document.get("tracks")
        if not isinstance(tracks, dict):
            tracks = {}
        for name, data in tracks.items():
            try:
                self._records[name] = TrackRecord.from_dict(data)
            except TypeError:
                logger.debug(f"Skipping malformed metadata cache entry: {name}")
        logger.info(f"Loaded {len(self._records)} cached track records")
        return len(self._records)

    def peek(self, name: str) -> Optional[TrackRecord]:
        """Cached record without a freshness check."""
        return self._records.get(name)

    async def get(self, name: str) -> TrackRecord:
        """Fresh record for a source file.

        Raises:
            SourceNotFoundError: If the file does not exist
        """
        async with self._locks(name):
            stat = await self.store.stat(name)
            cached = self._records.get(name)
            if cached is not None and cached.mtime_at_scan == stat.mtime:
                return cached

            record = await to_thread.run_sync(self._extract, name, stat.mtime)
            self._records[name] = record
            self._mark_dirty()
            logger.debug(f"Metadata {'refreshed' if cached else 'cached'} for {name}")
            return record

    async def duration(self, name: str) -> Optional[float]:
        return (await self.get(name)).duration

    async def invalidate(self, name: str) -> None:
        """Drop the record for a deleted or replaced file.

        Waits for any in-flight get() of the same name, so its record cannot
        land after the drop.
        """
        async with self._locks(name):
            if self._records.pop(name, None) is not None:
                self._mark_dirty()

    def _extract(self, name: str, mtime: float) -> TrackRecord:
        path = self.store.path_for(name)
        try:
            meta = self.extractor(str(path))
        except MetadataParseError as e:
            logger.warning(f"Falling back to filename metadata for {name}: {e}")
            return TrackRecord(name=name, mtime_at_scan=mtime, **filename_defaults(name))

        has_cover = meta.picture is not None
        return TrackRecord(
            name=name,
            title=meta.title or name,
            artist=meta.artist or "",
            album=meta.album or "",
            has_cover=has_cover,
            cover_ref=name if has_cover else None,
            mtime_at_scan=mtime,
            duration=meta.duration,
        )

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._flush())

    async def _flush(self) -> None:
        while self._dirty:
            self._dirty = False
            snapshot = {
                "version": CACHE_FORMAT_VERSION,
                "tracks": {name: rec.to_dict() for name, rec in self._records.items()},
            }
            try:
                await to_thread.run_sync(self.documents.save, snapshot)
            except OSError as e:
                logger.error(f"Failed to persist metadata cache: {e}")
                return

    async def flush(self) -> None:
        """Wait for any pending background write."""
        if self._flush_task is not None:
            await self._flush_task

    def __len__(self) -> int:
        return len(self._records)
