"""
Configuration management for homestream
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3337
    password: str = ""  # Shared secret for upload/delete; empty rejects everything
    allowed_origins: List[str] = field(default_factory=list)


@dataclass
class LibraryConfig:
    """Configuration for the music directory."""

    music_dir: str = field(default_factory=lambda: str(Path.home() / "Music"))
    supported_formats: List[str] = field(
        default_factory=lambda: [".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"]
    )
    playlist_file: str = "playlist.json"  # Relative to music_dir
    max_upload_files: int = 20


@dataclass
class CacheConfig:
    """Configuration for on-disk caches (metadata, covers, HLS artifacts)."""

    cache_dir: Optional[str] = None  # Default: <data dir>/cache

    def resolve_dir(self) -> Path:
        if self.cache_dir:
            return Path(self.cache_dir).expanduser()
        return get_data_dir() / "cache"


@dataclass
class TranscodeConfig:
    """Configuration for on-demand HLS transcoding."""

    ffmpeg_path: str = "ffmpeg"
    segment_duration: int = 10  # HLS segment length in seconds
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    loglevel: str = "error"


@dataclass
class StreamingConfig:
    """Configuration for range streaming."""

    chunk_size: int = 1024 * 1024  # Cap for open-ended ranges (1MB)
    read_block_size: int = 64 * 1024
    cache_max_age: int = 31536000  # One year

    def validate(self) -> None:
        """Validate streaming configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.read_block_size <= 0:
            raise ValueError(
                f"read_block_size must be positive, got {self.read_block_size}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/homestream/homestream.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of rotated files to keep
    console_output: bool = True  # Also log to stderr


@dataclass
class Config:
    """Main configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    transcode: TranscodeConfig = field(default_factory=TranscodeConfig)
    streaming: StreamingConfig = field(default_factory=StreamingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "homestream"
    return Path.home() / ".config" / "homestream"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. HOMESTREAM_CONFIG environment variable
    2. Current working directory
    3. XDG_CONFIG_HOME/homestream (or ~/.config/homestream)
    """
    env_path = os.environ.get("HOMESTREAM_CONFIG")
    if env_path:
        return Path(env_path).expanduser()

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "homestream"
    return Path.home() / ".local" / "share" / "homestream"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# homestream configuration

[server]
host = "0.0.0.0"
port = 3337

# Shared secret required for uploads and deletions.
# Prefer setting HOMESTREAM_PASSWORD in the environment or in ~/.config/homestream/.env
# password = "change-me"

# Extra CORS origins for a separately hosted frontend
allowed_origins = []

[library]
# Directory holding the audio files
music_dir = "~/Music"

# Extensions listed and accepted by the server
supported_formats = [".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"]

# Saved playlist order, relative to music_dir
playlist_file = "playlist.json"

# Maximum number of files per upload request
max_upload_files = 20

[cache]
# Metadata, cover and HLS caches (default: ~/.local/share/homestream/cache)
# cache_dir = "/var/cache/homestream"

[transcode]
ffmpeg_path = "ffmpeg"

# HLS segment length in seconds
segment_duration = 10

audio_codec = "aac"
audio_bitrate = "192k"

# ffmpeg log level for diagnostics captured on failure
loglevel = "error"

[streaming]
# Response size cap for open-ended range requests, in bytes
chunk_size = 1048576

# Read size used while streaming, in bytes
read_block_size = 65536

# Cache-Control max-age for audio and segments, in seconds
cache_max_age = 31536000

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/homestream/homestream.log)
# log_file = "/path/to/homestream.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also log to stderr
console_output = true
""".strip()


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per field."""
    config = Config()

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", config.server.host),
            port=int(server_data.get("port", config.server.port)),
            password=server_data.get("password", config.server.password),
            allowed_origins=server_data.get(
                "allowed_origins", config.server.allowed_origins
            ),
        )

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            music_dir=str(
                Path(library_data.get("music_dir", config.library.music_dir)).expanduser()
            ),
            supported_formats=[
                ext.lower()
                for ext in library_data.get(
                    "supported_formats", config.library.supported_formats
                )
            ],
            playlist_file=library_data.get(
                "playlist_file", config.library.playlist_file
            ),
            max_upload_files=int(
                library_data.get("max_upload_files", config.library.max_upload_files)
            ),
        )

    if "cache" in toml_data:
        cache_data = toml_data["cache"]
        cache_dir = cache_data.get("cache_dir")
        config.cache = CacheConfig(
            cache_dir=str(Path(cache_dir).expanduser()) if cache_dir else None
        )

    if "transcode" in toml_data:
        transcode_data = toml_data["transcode"]
        config.transcode = TranscodeConfig(
            ffmpeg_path=transcode_data.get("ffmpeg_path", config.transcode.ffmpeg_path),
            segment_duration=int(
                transcode_data.get(
                    "segment_duration", config.transcode.segment_duration
                )
            ),
            audio_codec=transcode_data.get("audio_codec", config.transcode.audio_codec),
            audio_bitrate=transcode_data.get(
                "audio_bitrate", config.transcode.audio_bitrate
            ),
            loglevel=transcode_data.get("loglevel", config.transcode.loglevel),
        )

    if "streaming" in toml_data:
        streaming_data = toml_data["streaming"]
        config.streaming = StreamingConfig(
            chunk_size=int(
                streaming_data.get("chunk_size", config.streaming.chunk_size)
            ),
            read_block_size=int(
                streaming_data.get("read_block_size", config.streaming.read_block_size)
            ),
            cache_max_age=int(
                streaming_data.get("cache_max_age", config.streaming.cache_max_age)
            ),
        )
        try:
            config.streaming.validate()
        except ValueError as e:
            logger.warning(f"Invalid streaming configuration: {e}. Using defaults.")
            config.streaming = StreamingConfig()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Environment variables win over TOML values."""
    password = os.environ.get("HOMESTREAM_PASSWORD")
    if password:
        config.server.password = password

    music_dir = os.environ.get("HOMESTREAM_MUSIC_DIR")
    if music_dir:
        config.library.music_dir = str(Path(music_dir).expanduser())

    port = os.environ.get("HOMESTREAM_PORT")
    if port:
        try:
            config.server.port = int(port)
        except ValueError:
            logger.warning(f"Ignoring non-numeric HOMESTREAM_PORT: {port!r}")

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - HOMESTREAM_PASSWORD
    - HOMESTREAM_MUSIC_DIR
    - HOMESTREAM_PORT
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        logger.info(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        return _apply_env_overrides(Config())

    return _apply_env_overrides(_parse_config(toml_data))


def ensure_directories(config: Config) -> None:
    """Create the music and cache directories if they do not exist."""
    Path(config.library.music_dir).mkdir(parents=True, exist_ok=True)
    config.cache.resolve_dir().mkdir(parents=True, exist_ok=True)
