"""
Transcode Orchestrator: on-demand HLS artifacts, at most one job per file.

Every decision about a filename (check the artifact, look up or create a job,
launch, finish, invalidate) runs under that filename's lock, so concurrent
first requests see exactly one launch. The lock is never held while the
transcoder runs; a monitor task re-acquires it to record the outcome.

State is split three ways:
- manifest on disk: transcode complete (the only source of truth for "done")
- self._jobs: transcodes still running
- self._failures: detail of the last failed run, reported until a retry
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional
from urllib.parse import quote

from loguru import logger

from homestream.core.errors import (
    ArtifactNotFoundError,
    HomestreamError,
    SourceNotFoundError,
    TranscodeLaunchError,
)
from homestream.core.locks import KeyedLock
from homestream.core.path_security import validate_segment_id
from homestream.domain.library.content_store import ContentStore

from .artifacts import SEGMENT_PATTERN, ArtifactStore
from .models import (
    ArtifactStatus,
    DurationLookup,
    JobState,
    JobStatus,
    TranscodeJob,
    TranscodeOutcome,
    TranscodeProcess,
    TranscodeRequest,
    Transcoder,
)


def segment_url_prefix(name: str) -> str:
    """URL prefix the manifest uses for a file's segments."""
    return f"/hls/{quote(name, safe='')}/"


class TranscodeOrchestrator:
    """Creates, tracks and cleans up per-file HLS transcodes."""

    def __init__(
        self,
        store: ContentStore,
        artifacts: ArtifactStore,
        transcoder: Transcoder,
        duration_lookup: Optional[DurationLookup] = None,
        url_prefix: Callable[[str], str] = segment_url_prefix,
    ):
        self.store = store
        self.artifacts = artifacts
        self.transcoder = transcoder
        self.duration_lookup = duration_lookup
        self.url_prefix = url_prefix
        self._jobs: dict[str, TranscodeJob] = {}
        self._failures: dict[str, str] = {}
        self._locks = KeyedLock()

    async def request_artifact(self, name: str) -> ArtifactStatus:
        """Return the finished manifest, or start/join the transcode for it.

        Raises:
            InvalidFilenameError: If the name is not a bare filename
            SourceNotFoundError: If there is no artifact and no source file
            TranscodeLaunchError: If the transcoder could not be started
        """
        self.store.path_for(name)

        async with self._locks(name):
            if await self.artifacts.has_manifest(name):
                return ArtifactStatus(
                    JobState.DONE, 100, self.artifacts.manifest_path(name)
                )

            job = self._jobs.get(name)
            if job is not None:
                return ArtifactStatus(job.state, job.progress)

            if not await self.store.exists(name):
                raise SourceNotFoundError(name)

            job = await self._launch(name)
            return ArtifactStatus(job.state, job.progress)

    async def _launch(self, name: str) -> TranscodeJob:
        # Caller holds the lock for name
        self._failures.pop(name, None)
        try:
            duration = await self._duration(name)
            directory = await self.artifacts.prepare(name)
            request = TranscodeRequest(
                input_path=self.store.path_for(name),
                manifest_path=self.artifacts.partial_manifest_path(name),
                segment_dir=directory,
                segment_pattern=SEGMENT_PATTERN,
                url_prefix=self.url_prefix(name),
                duration=duration,
            )
            process = await self.transcoder.start(request)
        except Exception as e:
            detail = str(e) or e.__class__.__name__
            self._failures[name] = detail
            await self.artifacts.remove(name)
            logger.error(f"Failed to launch transcoder for {name}: {detail}")
            raise TranscodeLaunchError(name, detail) from e

        job = TranscodeJob(source_file=name)
        job.mark_transcoding(process)
        self._jobs[name] = job
        job.task = asyncio.create_task(
            self._monitor(job, process), name=f"transcode:{name}"
        )
        logger.info(f"Started transcode job for {name}")
        return job

    async def _duration(self, name: str) -> Optional[float]:
        if self.duration_lookup is None:
            return None
        try:
            return await self.duration_lookup(name)
        except (HomestreamError, OSError) as e:
            logger.debug(f"No duration for {name}, progress stays at 0: {e}")
            return None

    async def _monitor(self, job: TranscodeJob, process: TranscodeProcess) -> None:
        try:
            outcome = await process.wait(job.update_progress)
        except asyncio.CancelledError:
            await process.kill()
            raise
        except Exception as e:
            logger.exception(f"Lost track of transcoder for {job.source_file}")
            await process.kill()
            outcome = TranscodeOutcome(-1, str(e) or repr(e))
        await self._finish(job, outcome)

    async def _finish(self, job: TranscodeJob, outcome: TranscodeOutcome) -> None:
        name = job.source_file
        async with self._locks(name):
            if self._jobs.get(name) is not job:
                # Invalidated while running; its artifacts are already gone
                logger.debug(f"Ignoring outcome of superseded job for {name}")
                return

            del self._jobs[name]
            if outcome.succeeded:
                if await self.artifacts.finalize(name):
                    job.mark_done()
                    logger.info(f"Transcode complete: {name}")
                    return
                detail = "Transcoder exited without writing a manifest"
            else:
                detail = outcome.describe()

            job.mark_error(detail)
            self._failures[name] = detail
            await self.artifacts.remove(name)
            logger.error(f"Transcode failed for {name}: {detail}")

    async def poll_status(self, name: str) -> JobStatus:
        """Current state for a filename. Never starts work.

        Raises:
            InvalidFilenameError: If the name is not a bare filename
        """
        self.store.path_for(name)

        job = self._jobs.get(name)
        if job is not None:
            return job.status()
        if await self.artifacts.has_manifest(name):
            return JobStatus(JobState.DONE, 100)
        failure = self._failures.get(name)
        if failure is not None:
            return JobStatus(JobState.ERROR, 0, failure)
        return JobStatus(JobState.PENDING, 0)

    async def fetch_segment(self, name: str, segment_id: str) -> Path:
        """Path of a segment of a completed artifact.

        The segment id is validated before anything touches the filesystem.

        Raises:
            InvalidSegmentError: If segment_id is malformed or a traversal attempt
            InvalidFilenameError: If the name is not a bare filename
            ArtifactNotFoundError: If the artifact or segment does not exist
        """
        validate_segment_id(segment_id)
        self.store.path_for(name)

        if not await self.artifacts.has_manifest(name):
            raise ArtifactNotFoundError(f"No completed stream for {name}")
        path = self.artifacts.segment_path(name, segment_id)
        if not await self.artifacts.exists(path):
            raise ArtifactNotFoundError(f"No segment {segment_id} for {name}")
        return path

    async def invalidate(self, name: str) -> None:
        """Cancel any running job and delete the artifact for a filename."""
        async with self._locks(name):
            await self.discard(name)

    async def discard(self, name: str) -> None:
        """Same as invalidate() for callers already inside exclusive(name)."""
        job = self._jobs.pop(name, None)
        if job is not None:
            await self._stop(job)
            logger.info(f"Cancelled transcode job for {name}")
        self._failures.pop(name, None)
        await self.artifacts.remove(name)

    @asynccontextmanager
    async def exclusive(self, name: str) -> AsyncIterator[None]:
        """Hold the filename's lock so no job can start during a source change."""
        async with self._locks(name):
            yield

    def active_jobs(self) -> dict[str, JobStatus]:
        return {name: job.status() for name, job in self._jobs.items()}

    async def shutdown(self) -> None:
        """Kill running transcoders and drop their partial output."""
        jobs = list(self._jobs.values())
        self._jobs.clear()
        for job in jobs:
            await self._stop(job)
            await self.artifacts.remove(job.source_file)
        if jobs:
            logger.info(f"Stopped {len(jobs)} running transcode job(s)")

    async def _stop(self, job: TranscodeJob) -> None:
        # A task cancelled before its first step skips _monitor's kill
        if job.task is not None:
            job.task.cancel()
            await asyncio.wait({job.task})
        if job.process is not None:
            await job.process.kill()
