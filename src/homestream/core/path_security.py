"""
Path security validation utilities for homestream.

Provides pure functions that keep client-supplied names inside the music
directory and the cache directories, preventing directory traversal attacks
and symlink escapes.
"""

import hashlib
import re
from pathlib import Path

from .errors import InvalidFilenameError, InvalidSegmentError

# ffmpeg writes segment000.ts, segment001.ts, ...
SEGMENT_ID_PATTERN = re.compile(r"^segment\d{3,6}\.ts$")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def is_path_within_root(file_path: Path, root: Path) -> bool:
    """Pure function - validates path is within the allowed directory.

    Uses Path.resolve() to handle symlinks and relative paths, then checks if the
    resolved path is a child of the resolved root.

    Args:
        file_path: The file path to validate
        root: Allowed root directory

    Returns:
        True if path is within root, False otherwise
    """
    try:
        resolved_path = file_path.resolve()
        resolved_path.relative_to(root.resolve())
        return True
    except ValueError:
        # relative_to raises ValueError if path is not a subpath
        return False
    except (OSError, RuntimeError):
        # Path.resolve() can raise OSError for invalid paths or RuntimeError for recursion
        return False


def validate_filename(name: str) -> str:
    """Pure function - returns the name if it is a bare file name.

    Rejects empty names, hidden files, path separators, traversal sequences
    and NUL bytes.

    Raises:
        InvalidFilenameError: If the name could address anything outside one directory
    """
    if not name or not name.strip():
        raise InvalidFilenameError("Empty filename")
    if "\x00" in name:
        raise InvalidFilenameError("Filename contains NUL byte")
    if "/" in name or "\\" in name:
        raise InvalidFilenameError(f"Filename contains path separator: {name!r}")
    if name in (".", "..") or name.startswith("."):
        raise InvalidFilenameError(f"Hidden or relative filename: {name!r}")
    return name


def validate_segment_id(segment_id: str) -> str:
    """Pure function - returns the segment id if it names an HLS segment.

    Performs no filesystem access.

    Raises:
        InvalidSegmentError: On traversal sequences or unexpected names
    """
    if ".." in segment_id or "/" in segment_id or "\\" in segment_id or "\x00" in segment_id:
        raise InvalidSegmentError(f"Path traversal in segment id: {segment_id!r}")
    if not SEGMENT_ID_PATTERN.match(segment_id):
        raise InvalidSegmentError(f"Unexpected segment id: {segment_id!r}")
    return segment_id


def cache_key(name: str) -> str:
    """Pure function - derive a stable, filesystem-safe identifier for a filename.

    Keeps a readable slug of the name and appends a digest so distinct names
    never collide after sanitizing.
    """
    stem = _UNSAFE_CHARS.sub("_", Path(name).stem).strip("._-")[:48] or "track"
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:16]
    return f"{stem}-{digest}"
