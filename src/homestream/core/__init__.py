"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging (Loguru)
- Exceptions shared by every domain
- Path validation for client-supplied names
"""

from .config import (
    CacheConfig,
    Config,
    LibraryConfig,
    LoggingConfig,
    ServerConfig,
    StreamingConfig,
    TranscodeConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .errors import (
    ArtifactNotFoundError,
    CoverNotFoundError,
    HomestreamError,
    InvalidFilenameError,
    InvalidInputError,
    InvalidSegmentError,
    MetadataParseError,
    NotFoundError,
    RangeNotSatisfiableError,
    SourceNotFoundError,
    TranscodeLaunchError,
)
from .path_security import (
    cache_key,
    is_path_within_root,
    validate_filename,
    validate_segment_id,
)

__all__ = [
    # Configuration
    "CacheConfig",
    "Config",
    "LibraryConfig",
    "LoggingConfig",
    "ServerConfig",
    "StreamingConfig",
    "TranscodeConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    # Errors
    "ArtifactNotFoundError",
    "CoverNotFoundError",
    "HomestreamError",
    "InvalidFilenameError",
    "InvalidInputError",
    "InvalidSegmentError",
    "MetadataParseError",
    "NotFoundError",
    "RangeNotSatisfiableError",
    "SourceNotFoundError",
    "TranscodeLaunchError",
    # Path security
    "cache_key",
    "is_path_within_root",
    "validate_filename",
    "validate_segment_id",
]
