"""
HLS artifact storage.

One directory per source file, named by cache_key(). The transcoder writes
its playlist to a partial name; only a finished run renames it to the final
manifest, so the manifest's presence alone means "transcode complete".
"""

import os
import shutil
from pathlib import Path

from anyio import to_thread

from homestream.core.path_security import cache_key

MANIFEST_NAME = "index.m3u8"
PARTIAL_MANIFEST_NAME = "index.partial.m3u8"
SEGMENT_PATTERN = "segment%03d.ts"


class ArtifactStore:
    """Per-file HLS directories under one root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def dir_for(self, name: str) -> Path:
        return self.root / cache_key(name)

    def manifest_path(self, name: str) -> Path:
        return self.dir_for(name) / MANIFEST_NAME

    def partial_manifest_path(self, name: str) -> Path:
        return self.dir_for(name) / PARTIAL_MANIFEST_NAME

    def segment_path(self, name: str, segment_id: str) -> Path:
        """Path of a segment. segment_id must already be validated."""
        return self.dir_for(name) / segment_id

    async def has_manifest(self, name: str) -> bool:
        return await to_thread.run_sync(self.manifest_path(name).is_file)

    async def exists(self, path: Path) -> bool:
        return await to_thread.run_sync(path.is_file)

    async def prepare(self, name: str) -> Path:
        """Empty (or create) the directory for a fresh run."""
        directory = self.dir_for(name)

        def _prepare() -> None:
            shutil.rmtree(directory, ignore_errors=True)
            directory.mkdir(parents=True, exist_ok=True)

        await to_thread.run_sync(_prepare)
        return directory

    async def finalize(self, name: str) -> bool:
        """Promote the partial playlist to the manifest. False if none was written."""
        partial = self.partial_manifest_path(name)
        final = self.manifest_path(name)

        def _finalize() -> bool:
            if not partial.is_file():
                return False
            os.replace(partial, final)
            return True

        return await to_thread.run_sync(_finalize)

    async def remove(self, name: str) -> None:
        directory = self.dir_for(name)
        await to_thread.run_sync(
            lambda: shutil.rmtree(directory, ignore_errors=True)
        )
