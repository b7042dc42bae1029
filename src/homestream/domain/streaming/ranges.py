"""
HTTP byte-range resolution for audio streaming.

Only a single ``bytes=start-end`` range is honoured. Multi-range and suffix
forms are rejected as unsatisfiable rather than silently ignored, so clients
never get a 200 body where they expected a slice.
"""

import re
from typing import NamedTuple, Optional

from homestream.core.errors import RangeNotSatisfiableError

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d*)$")


class ByteRange(NamedTuple):
    """Inclusive byte span within a resource of known size."""

    start: int
    end: int
    size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.size}"


def unsatisfied_content_range(size: int) -> str:
    return f"bytes */{size}"


def parse_range(header: Optional[str], size: int, chunk_size: int) -> Optional[ByteRange]:
    """Resolve a Range header against a file of `size` bytes.

    Returns None when there is no Range header (serve the whole file).

    An open-ended range (``bytes=N-``) is capped at chunk_size bytes. An end
    equal to the size is clamped to the last byte; anything further out is
    unsatisfiable.

    Raises:
        RangeNotSatisfiableError: Malformed, multi-range, or out-of-bounds ranges
    """
    if header is None:
        return None

    match = _RANGE_RE.match(header.strip())
    if match is None:
        raise RangeNotSatisfiableError(size, header)

    start = int(match.group(1))
    if start >= size:
        raise RangeNotSatisfiableError(size, header)

    if match.group(2):
        end = int(match.group(2))
        if end > size or start > end:
            raise RangeNotSatisfiableError(size, header)
        end = min(end, size - 1)
    else:
        end = min(start + chunk_size - 1, size - 1)

    return ByteRange(start, end, size)
