"""
Content Store: the directory of source audio files.

Every client-supplied name is validated as a bare filename before it is
joined onto the music directory. Blocking filesystem calls run in worker
threads so the event loop keeps serving other requests.
"""

import os
from pathlib import Path
from typing import AsyncIterator, Iterable

import anyio
from anyio import to_thread
from loguru import logger

from homestream.core.errors import InvalidFilenameError, SourceNotFoundError
from homestream.core.path_security import is_path_within_root, validate_filename

from .models import FileStat

DEFAULT_READ_BLOCK = 64 * 1024


async def open_byte_range(
    path: Path, start: int, end: int, block_size: int = DEFAULT_READ_BLOCK
) -> AsyncIterator[bytes]:
    """Open path eagerly and return an iterator over bytes start..end inclusive.

    Opening happens here rather than on first iteration so that a missing
    file surfaces before any response headers are sent.

    Raises:
        OSError: If the file cannot be opened
    """
    f = await anyio.open_file(path, "rb")
    try:
        await f.seek(start)
    except OSError:
        await f.aclose()
        raise

    async def _chunks() -> AsyncIterator[bytes]:
        try:
            remaining = end - start + 1
            while remaining > 0:
                data = await f.read(min(block_size, remaining))
                if not data:
                    break
                remaining -= len(data)
                yield data
        finally:
            await f.aclose()

    return _chunks()


class ContentStore:
    """Source audio files in one flat directory."""

    def __init__(
        self,
        root: Path,
        supported_formats: Iterable[str],
        read_block_size: int = DEFAULT_READ_BLOCK,
    ):
        self.root = Path(root)
        self.supported_formats = {ext.lower() for ext in supported_formats}
        self.read_block_size = read_block_size

    def path_for(self, name: str) -> Path:
        """Resolve a client-supplied name to a path inside the music directory.

        Raises:
            InvalidFilenameError: If the name escapes the directory
        """
        validate_filename(name)
        path = self.root / name
        if not is_path_within_root(path, self.root):
            raise InvalidFilenameError(f"Path escapes music directory: {name!r}")
        return path

    def is_supported(self, name: str) -> bool:
        return Path(name).suffix.lower() in self.supported_formats

    async def exists(self, name: str) -> bool:
        path = self.path_for(name)
        return await to_thread.run_sync(path.is_file)

    async def stat(self, name: str) -> FileStat:
        """Size and mtime of a source file.

        Raises:
            SourceNotFoundError: If the file does not exist
        """
        path = self.path_for(name)
        try:
            st = await to_thread.run_sync(path.stat)
        except FileNotFoundError as e:
            raise SourceNotFoundError(name) from e
        return FileStat(size=st.st_size, mtime=st.st_mtime)

    async def open_range(
        self, name: str, start: int, end: int
    ) -> AsyncIterator[bytes]:
        """Byte stream for start..end inclusive of a source file.

        Raises:
            SourceNotFoundError: If the file vanished before it could be opened
        """
        path = self.path_for(name)
        try:
            return await open_byte_range(path, start, end, self.read_block_size)
        except FileNotFoundError as e:
            raise SourceNotFoundError(name) from e

    async def delete(self, name: str) -> None:
        """Remove a source file.

        Raises:
            SourceNotFoundError: If the file does not exist
        """
        path = self.path_for(name)
        try:
            await to_thread.run_sync(path.unlink)
        except FileNotFoundError as e:
            raise SourceNotFoundError(name) from e
        logger.info(f"Deleted source file: {name}")

    async def list_entries(self) -> list[tuple[str, float]]:
        """(name, mtime) for every supported audio file in the directory."""

        def _scan() -> list[tuple[str, float]]:
            if not self.root.is_dir():
                return []
            entries = []
            for path in self.root.iterdir():
                if path.name.startswith(".") or not self.is_supported(path.name):
                    continue
                try:
                    st = path.stat()
                except OSError:
                    entries.append((path.name, 0.0))
                    continue
                if path.is_file():
                    entries.append((path.name, st.st_mtime))
            return entries

        return await to_thread.run_sync(_scan)

    async def save(self, name: str, chunks: AsyncIterator[bytes]) -> FileStat:
        """Store an uploaded file, replacing any existing file of that name.

        The upload is written to a hidden temp file and renamed into place, so
        listings never pick up a partially written track.
        """
        path = self.path_for(name)
        temp_path = self.root / f".{name}.upload"
        written = 0
        try:
            async with await anyio.open_file(temp_path, "wb") as f:
                async for chunk in chunks:
                    await f.write(chunk)
                    written += len(chunk)
            await to_thread.run_sync(os.replace, temp_path, path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        logger.info(f"Stored upload: {name} ({written} bytes)")
        return await self.stat(name)
