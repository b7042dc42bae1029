"""
Transcode domain models.

A TranscodeJob lives only while its subprocess runs. Once the job finishes
the on-disk manifest (or the recorded failure) answers status questions.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, NamedTuple, Optional, Protocol

# Progress is capped here until the transcoder reports success
MAX_RUNNING_PROGRESS = 99


class JobState(str, Enum):
    """State of a per-file transcode, as reported to clients."""

    PENDING = "pending"
    TRANSCODING = "transcoding"
    DONE = "done"
    ERROR = "error"


class TranscodeRequest(NamedTuple):
    """Everything the external transcoder needs for one file."""

    input_path: Path
    manifest_path: Path  # Written by the transcoder; renamed into place on success
    segment_dir: Path
    segment_pattern: str  # e.g. segment%03d.ts
    url_prefix: str  # Prepended to segment names inside the manifest
    duration: Optional[float] = None  # Source duration in seconds, for progress


class TranscodeOutcome(NamedTuple):
    """Exit status of a transcoder run plus captured diagnostics."""

    returncode: int
    diagnostics: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        message = f"Transcoder exited with code {self.returncode}"
        if self.diagnostics:
            message += f": {self.diagnostics}"
        return message


ProgressCallback = Callable[[float], None]


class TranscodeProcess(Protocol):
    """A running transcoder."""

    async def wait(self, on_progress: ProgressCallback) -> TranscodeOutcome: ...

    async def kill(self) -> None: ...


class Transcoder(Protocol):
    """Starts transcoder processes."""

    async def start(self, request: TranscodeRequest) -> TranscodeProcess: ...


DurationLookup = Callable[[str], Awaitable[Optional[float]]]


@dataclass
class TranscodeJob:
    """In-flight transcode for one source file."""

    source_file: str
    state: JobState = JobState.PENDING
    progress: int = 0
    error_detail: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    process: Optional[TranscodeProcess] = field(default=None, repr=False)
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def mark_transcoding(self, process: TranscodeProcess) -> None:
        self.process = process
        self.state = JobState.TRANSCODING
        self.updated_at = time.time()

    def update_progress(self, percent: float) -> None:
        """Raise progress, never lowering it and never reaching 100 early."""
        value = min(int(percent), MAX_RUNNING_PROGRESS)
        if value > self.progress:
            self.progress = value
            self.updated_at = time.time()

    def mark_done(self) -> None:
        self.state = JobState.DONE
        self.progress = 100
        self.updated_at = time.time()

    def mark_error(self, detail: str) -> None:
        self.state = JobState.ERROR
        self.error_detail = detail
        self.updated_at = time.time()

    def status(self) -> "JobStatus":
        return JobStatus(self.state, self.progress, self.error_detail)


@dataclass(frozen=True)
class JobStatus:
    """Answer to a status poll."""

    state: JobState
    progress: int = 0
    error_detail: Optional[str] = None


@dataclass(frozen=True)
class ArtifactStatus:
    """Answer to an artifact request: either a ready manifest or a job in flight."""

    state: JobState
    progress: int = 0
    manifest_path: Optional[Path] = None

    @property
    def ready(self) -> bool:
        return self.state == JobState.DONE and self.manifest_path is not None
