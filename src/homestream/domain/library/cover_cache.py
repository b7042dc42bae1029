"""
Cover Cache: embedded artwork extracted once and kept on disk.

Entries are never refreshed when the audio file changes; only deleting (or
re-uploading) the track removes them.
"""

from pathlib import Path
from typing import Callable, Optional

from anyio import to_thread
from loguru import logger

from homestream.core.errors import CoverNotFoundError, MetadataParseError
from homestream.core.path_security import cache_key

from .content_store import ContentStore
from .metadata import read_cover
from .models import Picture
from .storage import atomic_write_bytes

DEFAULT_MIME = "image/jpeg"


class CoverCache:
    """Cover images keyed by sanitized filename."""

    def __init__(
        self,
        store: ContentStore,
        cache_dir: Path,
        reader: Callable[[str], Optional[Picture]] = read_cover,
    ):
        self.store = store
        self.cache_dir = Path(cache_dir)
        self.reader = reader

    def _paths(self, name: str) -> tuple[Path, Path]:
        key = cache_key(name)
        return self.cache_dir / f"{key}.img", self.cache_dir / f"{key}.type"

    async def get(self, name: str) -> Picture:
        """Cover image for a track.

        Raises:
            CoverNotFoundError: If the track is missing or has no embedded art
        """
        # Validates the name before it reaches cache_key
        source = self.store.path_for(name)
        blob_path, type_path = self._paths(name)

        cached = await to_thread.run_sync(self._read_cached, blob_path, type_path)
        if cached is not None:
            return cached

        if not await self.store.exists(name):
            raise CoverNotFoundError(f"No such track: {name}")

        try:
            picture = await to_thread.run_sync(self.reader, str(source))
        except MetadataParseError as e:
            logger.warning(f"Could not read cover from {name}: {e}")
            raise CoverNotFoundError(f"Unreadable tags: {name}") from e
        if picture is None:
            raise CoverNotFoundError(f"No embedded cover: {name}")

        try:
            await to_thread.run_sync(self._write_cached, blob_path, type_path, picture)
        except OSError as e:
            # Serving still works; the next request extracts again
            logger.error(f"Failed to cache cover for {name}: {e}")
        else:
            logger.debug(f"Cached cover for {name} ({len(picture.data)} bytes)")
        return picture

    async def invalidate(self, name: str) -> None:
        blob_path, type_path = self._paths(name)

        def _remove() -> None:
            blob_path.unlink(missing_ok=True)
            type_path.unlink(missing_ok=True)

        await to_thread.run_sync(_remove)

    async def contains(self, name: str) -> bool:
        blob_path, _ = self._paths(name)
        return await to_thread.run_sync(blob_path.exists)

    @staticmethod
    def _read_cached(blob_path: Path, type_path: Path) -> Optional[Picture]:
        try:
            data = blob_path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            mime = type_path.read_text(encoding="utf-8").strip() or DEFAULT_MIME
        except FileNotFoundError:
            mime = DEFAULT_MIME
        return Picture(mime_type=mime, data=data)

    @staticmethod
    def _write_cached(blob_path: Path, type_path: Path, picture: Picture) -> None:
        # Sidecar first: the blob's presence marks a complete entry
        atomic_write_bytes(type_path, picture.mime_type.encode("utf-8"))
        atomic_write_bytes(blob_path, picture.data)
