"""Tests for direct range streaming of source files."""

import pytest

from web.backend.streaming import get_mime_type

SIZE = 3 * 1024 * 1024 + 17


@pytest.fixture
def track(music_dir):
    data = bytes(i % 251 for i in range(SIZE))
    (music_dir / "long track.mp3").write_bytes(data)
    return data


def test_full_file_without_range(client, track):
    response = client.get("/music/long%20track.mp3")

    assert response.status_code == 200
    assert response.content == track
    assert response.headers["accept-ranges"] == "bytes"
    assert response.headers["content-length"] == str(SIZE)
    assert response.headers["content-type"] == "audio/mpeg"
    assert "max-age=31536000" in response.headers["cache-control"]


def test_explicit_range(client, track):
    response = client.get("/music/long%20track.mp3", headers={"Range": "bytes=100-299"})

    assert response.status_code == 206
    assert response.content == track[100:300]
    assert response.headers["content-range"] == f"bytes 100-299/{SIZE}"
    assert response.headers["content-length"] == "200"


def test_range_to_size_is_clamped(client, track):
    response = client.get("/music/long%20track.mp3", headers={"Range": f"bytes=0-{SIZE}"})

    assert response.status_code == 206
    assert response.headers["content-range"] == f"bytes 0-{SIZE - 1}/{SIZE}"
    assert len(response.content) == SIZE


def test_open_ended_range_capped_at_chunk(client, track):
    response = client.get("/music/long%20track.mp3", headers={"Range": "bytes=1000-"})

    chunk = 1024 * 1024
    assert response.status_code == 206
    assert response.headers["content-range"] == f"bytes 1000-{1000 + chunk - 1}/{SIZE}"
    assert response.content == track[1000 : 1000 + chunk]


def test_start_past_end_is_416(client, track):
    response = client.get("/music/long%20track.mp3", headers={"Range": f"bytes={SIZE}-"})

    assert response.status_code == 416
    assert response.headers["content-range"] == f"bytes */{SIZE}"
    assert response.content == b""


def test_multi_range_is_416(client, track):
    response = client.get("/music/long%20track.mp3", headers={"Range": "bytes=0-1,5-9"})
    assert response.status_code == 416


def test_missing_file_is_404(client):
    assert client.get("/music/nothing.mp3").status_code == 404


def test_hidden_file_rejected(client, music_dir):
    (music_dir / ".secret.mp3").write_bytes(b"x")
    assert client.get("/music/.secret.mp3").status_code == 400


def test_mime_types():
    assert get_mime_type("a.flac") == "audio/flac"
    assert get_mime_type("a.M4A") == "audio/mp4"
    assert get_mime_type("segment000.ts") == "video/mp2t"
    assert get_mime_type("a.unknownext") == "application/octet-stream"
