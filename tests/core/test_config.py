"""Tests for TOML configuration loading."""

from pathlib import Path

import pytest

from homestream.core import config as config_module
from homestream.core.config import (
    Config,
    _apply_env_overrides,
    _parse_config,
    create_default_config,
    load_config,
)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point every config/data lookup at tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("HOMESTREAM_CONFIG", raising=False)
    monkeypatch.delenv("HOMESTREAM_PASSWORD", raising=False)
    monkeypatch.delenv("HOMESTREAM_MUSIC_DIR", raising=False)
    monkeypatch.delenv("HOMESTREAM_PORT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults():
    config = Config()
    assert config.server.port == 3337
    assert config.streaming.chunk_size == 1024 * 1024
    assert ".flac" in config.library.supported_formats
    assert config.transcode.segment_duration == 10


def test_default_config_text_parses():
    import tomllib

    parsed = _parse_config(tomllib.loads(create_default_config()))
    assert parsed.server.port == 3337
    assert parsed.server.password == ""
    assert parsed.streaming.cache_max_age == 31536000


def test_parse_sections():
    config = _parse_config(
        {
            "server": {"port": 8080, "password": "pw"},
            "library": {"music_dir": "/srv/music", "supported_formats": [".MP3"]},
            "cache": {"cache_dir": "/tmp/hs-cache"},
            "transcode": {"audio_bitrate": "256k"},
            "streaming": {"chunk_size": 4096},
            "logging": {"level": "debug"},
        }
    )
    assert config.server.port == 8080
    assert config.server.password == "pw"
    assert config.library.music_dir == "/srv/music"
    assert config.library.supported_formats == [".mp3"]
    assert config.cache.resolve_dir() == Path("/tmp/hs-cache")
    assert config.transcode.audio_bitrate == "256k"
    assert config.transcode.audio_codec == "aac"
    assert config.streaming.chunk_size == 4096
    assert config.logging.level == "DEBUG"


def test_invalid_streaming_values_fall_back():
    config = _parse_config({"streaming": {"chunk_size": 0}})
    assert config.streaming.chunk_size == 1024 * 1024


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("HOMESTREAM_PASSWORD", "from-env")
    monkeypatch.setenv("HOMESTREAM_MUSIC_DIR", str(tmp_path))
    monkeypatch.setenv("HOMESTREAM_PORT", "9000")

    config = _apply_env_overrides(Config())

    assert config.server.password == "from-env"
    assert config.library.music_dir == str(tmp_path)
    assert config.server.port == 9000


def test_non_numeric_port_ignored(monkeypatch):
    monkeypatch.setenv("HOMESTREAM_PORT", "eighty")
    assert _apply_env_overrides(Config()).server.port == 3337


def test_load_config_writes_default_file(isolated_env):
    config = load_config()

    written = isolated_env / "config" / "homestream" / "config.toml"
    assert written.exists()
    assert config.server.port == 3337


def test_load_config_prefers_cwd_file(isolated_env):
    (isolated_env / "config.toml").write_text('[server]\nport = 4444\n')
    assert load_config().server.port == 4444


def test_load_config_survives_bad_toml(isolated_env):
    (isolated_env / "config.toml").write_text("[server\nport = ")
    assert load_config().server.port == 3337


def test_cache_dir_defaults_under_data_dir(isolated_env):
    assert Config().cache.resolve_dir() == config_module.get_data_dir() / "cache"
