"""Shared pytest fixtures: temp library directories and a scriptable transcoder."""

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from homestream.core.config import (
    CacheConfig,
    Config,
    LibraryConfig,
    LoggingConfig,
    ServerConfig,
)
from homestream.domain.library.content_store import ContentStore
from homestream.domain.transcode.artifacts import ArtifactStore
from homestream.domain.transcode.models import TranscodeOutcome, TranscodeRequest
from homestream.domain.transcode.orchestrator import TranscodeOrchestrator

SUPPORTED = [".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"]
TEST_PASSWORD = "letmein"


class FakeProcess:
    """Stands in for a running ffmpeg; tests decide when and how it exits."""

    def __init__(self, request: TranscodeRequest):
        self.request = request
        self.killed = False
        self.progress_events: list[float] = []
        self._returncode = 0
        self._diagnostics = ""
        self._write_manifest = True
        self._finished = asyncio.Event()

    def complete(
        self, returncode: int = 0, diagnostics: str = "", write_manifest: bool = True
    ) -> None:
        self._returncode = returncode
        self._diagnostics = diagnostics
        self._write_manifest = write_manifest
        self._finished.set()

    async def wait(self, on_progress) -> TranscodeOutcome:
        for percent in self.progress_events:
            on_progress(percent)
        await self._finished.wait()
        if self.killed:
            return TranscodeOutcome(-9, "killed")
        if self._write_manifest:
            segment = self.request.segment_dir / "segment000.ts"
            segment.write_bytes(b"\x47" * 188 * 4)
            self.request.manifest_path.write_text(
                "#EXTM3U\n#EXT-X-PLAYLIST-TYPE:VOD\n#EXTINF:10.0,\n"
                f"{self.request.url_prefix}segment000.ts\n#EXT-X-ENDLIST\n"
            )
        return TranscodeOutcome(self._returncode, self._diagnostics)

    async def kill(self) -> None:
        self.killed = True
        self._finished.set()


class FakeTranscoder:
    """Records launches; optionally finishes each job right away."""

    def __init__(self, auto_complete: bool = False):
        self.auto_complete = auto_complete
        self.launches: list[FakeProcess] = []
        self.fail_with: Optional[OSError] = None

    @property
    def launch_count(self) -> int:
        return len(self.launches)

    async def start(self, request: TranscodeRequest) -> FakeProcess:
        if self.fail_with is not None:
            raise self.fail_with
        process = FakeProcess(request)
        self.launches.append(process)
        if self.auto_complete:
            process.complete()
        return process


async def settle(orchestrator: TranscodeOrchestrator, name: str, rounds: int = 200):
    """Let monitor tasks run until the job for name is no longer active."""
    for _ in range(rounds):
        if name not in orchestrator.active_jobs():
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"Transcode for {name} did not settle")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    path = tmp_path / "music"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def content_store(music_dir: Path) -> ContentStore:
    return ContentStore(music_dir, SUPPORTED)


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def artifact_store(cache_dir: Path) -> ArtifactStore:
    return ArtifactStore(cache_dir / "hls")


@pytest.fixture
def orchestrator(content_store, artifact_store, fake_transcoder) -> TranscodeOrchestrator:
    return TranscodeOrchestrator(content_store, artifact_store, fake_transcoder)


@pytest.fixture
def test_config(music_dir: Path, cache_dir: Path, tmp_path: Path) -> Config:
    return Config(
        server=ServerConfig(password=TEST_PASSWORD),
        library=LibraryConfig(music_dir=str(music_dir)),
        cache=CacheConfig(cache_dir=str(cache_dir)),
        logging=LoggingConfig(log_file=str(tmp_path / "homestream.log"), console_output=False),
    )
