"""
ffmpeg-backed transcoder producing VOD HLS (MPEG-TS segments).

Progress is read from ffmpeg's ``-progress pipe:1`` key=value stream; stderr
is kept as a short tail for error reports.
"""

import asyncio
from collections import deque
from typing import Optional

from loguru import logger

from homestream.core.config import TranscodeConfig

from .models import ProgressCallback, TranscodeOutcome, TranscodeRequest

STDERR_TAIL_LINES = 20


def parse_progress_line(line: str) -> Optional[float]:
    """Elapsed output time in seconds from one ``-progress`` line, if present.

    ffmpeg reports both out_time_us and (despite the name) out_time_ms in
    microseconds.
    """
    key, sep, value = line.strip().partition("=")
    if not sep or key not in ("out_time_us", "out_time_ms"):
        return None
    try:
        micros = int(value)
    except ValueError:
        # "N/A" before the first packet
        return None
    if micros < 0:
        return None
    return micros / 1_000_000


def progress_percent(elapsed: float, duration: Optional[float]) -> float:
    if not duration or duration <= 0:
        return 0.0
    return min(100.0, elapsed / duration * 100)


def build_command(config: TranscodeConfig, request: TranscodeRequest) -> list[str]:
    """ffmpeg argument list for one audio-only HLS transcode."""
    return [
        config.ffmpeg_path,
        "-hide_banner",
        "-nostdin",
        "-loglevel", config.loglevel,
        "-nostats",
        "-progress", "pipe:1",
        "-y",
        "-i", str(request.input_path),
        "-vn",
        "-map", "0:a:0",
        "-c:a", config.audio_codec,
        "-b:a", config.audio_bitrate,
        "-f", "hls",
        "-hls_time", str(config.segment_duration),
        "-hls_playlist_type", "vod",
        "-hls_list_size", "0",
        "-hls_segment_type", "mpegts",
        "-start_number", "0",
        "-hls_base_url", request.url_prefix,
        "-hls_segment_filename", str(request.segment_dir / request.segment_pattern),
        str(request.manifest_path),
    ]


class FFmpegProcess:
    """A running ffmpeg transcode."""

    def __init__(self, process: asyncio.subprocess.Process, request: TranscodeRequest):
        self._process = process
        self._request = request
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    @property
    def pid(self) -> int:
        return self._process.pid

    async def _read_progress(self, on_progress: ProgressCallback) -> None:
        stream = self._process.stdout
        if stream is None:
            return
        async for raw in stream:
            elapsed = parse_progress_line(raw.decode("utf-8", errors="replace"))
            if elapsed is not None:
                on_progress(progress_percent(elapsed, self._request.duration))

    async def _read_stderr(self) -> None:
        stream = self._process.stderr
        if stream is None:
            return
        async for raw in stream:
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                self._stderr_tail.append(line)

    async def wait(self, on_progress: ProgressCallback) -> TranscodeOutcome:
        await asyncio.gather(self._read_progress(on_progress), self._read_stderr())
        returncode = await self._process.wait()
        return TranscodeOutcome(returncode, "\n".join(self._stderr_tail))

    async def kill(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
        await self._process.wait()


class FFmpegTranscoder:
    """Launches ffmpeg subprocesses."""

    def __init__(self, config: TranscodeConfig):
        self.config = config

    async def start(self, request: TranscodeRequest) -> FFmpegProcess:
        """Spawn ffmpeg for a request.

        Raises:
            OSError: If the executable cannot be launched
        """
        command = build_command(self.config, request)
        logger.debug(f"Starting transcoder: {' '.join(command)}")
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        logger.info(f"Transcoding {request.input_path.name} (pid {process.pid})")
        return FFmpegProcess(process, request)
