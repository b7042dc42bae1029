"""Transcode domain - on-demand HLS artifacts.

This domain handles:
- Launching ffmpeg to produce VOD HLS playlists and MPEG-TS segments
- Guaranteeing at most one running transcode per source file
- Progress polling and failure reporting
- Artifact cleanup when a source file goes away
"""

from .artifacts import ArtifactStore
from .ffmpeg import FFmpegTranscoder, build_command, parse_progress_line
from .models import (
    ArtifactStatus,
    JobState,
    JobStatus,
    TranscodeJob,
    TranscodeOutcome,
    TranscodeRequest,
)
from .orchestrator import TranscodeOrchestrator, segment_url_prefix

__all__ = [
    "ArtifactStatus",
    "ArtifactStore",
    "FFmpegTranscoder",
    "JobState",
    "JobStatus",
    "TranscodeJob",
    "TranscodeOrchestrator",
    "TranscodeOutcome",
    "TranscodeRequest",
    "build_command",
    "parse_progress_line",
    "segment_url_prefix",
]
