"""Tests for ffmpeg command construction and progress parsing."""

from pathlib import Path

import pytest

from homestream.core.config import TranscodeConfig
from homestream.domain.transcode.ffmpeg import (
    FFmpegTranscoder,
    build_command,
    parse_progress_line,
    progress_percent,
)
from homestream.domain.transcode.models import TranscodeJob, TranscodeRequest


def make_request(tmp_path: Path) -> TranscodeRequest:
    return TranscodeRequest(
        input_path=tmp_path / "song.flac",
        manifest_path=tmp_path / "out" / "index.partial.m3u8",
        segment_dir=tmp_path / "out",
        segment_pattern="segment%03d.ts",
        url_prefix="/hls/song.flac/",
        duration=200.0,
    )


class TestBuildCommand:
    def test_hls_vod_arguments(self, tmp_path):
        cmd = build_command(TranscodeConfig(), make_request(tmp_path))

        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-f") + 1] == "hls"
        assert cmd[cmd.index("-hls_playlist_type") + 1] == "vod"
        assert cmd[cmd.index("-hls_list_size") + 1] == "0"
        assert cmd[cmd.index("-hls_time") + 1] == "10"
        assert cmd[cmd.index("-hls_segment_type") + 1] == "mpegts"
        assert cmd[cmd.index("-hls_base_url") + 1] == "/hls/song.flac/"
        assert cmd[cmd.index("-progress") + 1] == "pipe:1"
        assert cmd[-1].endswith("index.partial.m3u8")

    def test_segment_pattern_inside_segment_dir(self, tmp_path):
        cmd = build_command(TranscodeConfig(), make_request(tmp_path))

        pattern = cmd[cmd.index("-hls_segment_filename") + 1]
        assert pattern == str(tmp_path / "out" / "segment%03d.ts")

    def test_config_values_used(self, tmp_path):
        config = TranscodeConfig(
            ffmpeg_path="/opt/ffmpeg", segment_duration=6, audio_bitrate="128k"
        )
        cmd = build_command(config, make_request(tmp_path))

        assert cmd[0] == "/opt/ffmpeg"
        assert cmd[cmd.index("-hls_time") + 1] == "6"
        assert cmd[cmd.index("-b:a") + 1] == "128k"
        assert "-vn" in cmd


class TestProgressParsing:
    def test_out_time_us(self):
        assert parse_progress_line("out_time_us=12500000\n") == 12.5

    def test_out_time_ms_is_microseconds(self):
        assert parse_progress_line("out_time_ms=2000000") == 2.0

    def test_not_available_yet(self):
        assert parse_progress_line("out_time_us=N/A") is None

    def test_unrelated_keys_ignored(self):
        assert parse_progress_line("bitrate= 192.0kbits/s") is None
        assert parse_progress_line("progress=continue") is None
        assert parse_progress_line("garbage") is None

    def test_percent_needs_duration(self):
        assert progress_percent(50.0, None) == 0.0
        assert progress_percent(50.0, 200.0) == 25.0
        assert progress_percent(250.0, 200.0) == 100.0


class TestJobProgress:
    def test_never_decreases(self):
        job = TranscodeJob(source_file="a.flac")
        job.update_progress(40)
        job.update_progress(20)
        assert job.progress == 40

    def test_capped_until_done(self):
        job = TranscodeJob(source_file="a.flac")
        job.update_progress(100)
        assert job.progress == 99
        job.mark_done()
        assert job.progress == 100


@pytest.mark.anyio
async def test_missing_executable_raises_oserror(tmp_path):
    transcoder = FFmpegTranscoder(
        TranscodeConfig(ffmpeg_path=str(tmp_path / "no-such-ffmpeg"))
    )
    with pytest.raises(OSError):
        await transcoder.start(make_request(tmp_path))
