"""
Streaming Gateway: range-aware responses for source files and HLS segments.

The file is opened before the response starts, so a file that vanished
still gets a proper 404. Once headers are out, an I/O error can only be
logged and the connection dropped.
"""

import mimetypes
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi.responses import Response, StreamingResponse
from loguru import logger

from homestream.core.config import StreamingConfig
from homestream.core.errors import RangeNotSatisfiableError
from homestream.domain.streaming.ranges import parse_range, unsatisfied_content_range

AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".webm": "audio/webm",
    ".ts": "video/mp2t",
}

Opener = Callable[[int, int], Awaitable[AsyncIterator[bytes]]]


def get_mime_type(name: str) -> str:
    """Pure function - deterministic MIME type detection."""
    mime = AUDIO_MIME_TYPES.get(Path(name).suffix.lower())
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


async def _guard(body: AsyncIterator[bytes], label: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in body:
            yield chunk
    except OSError as e:
        # Status and headers are already on the wire
        logger.error(f"Stream aborted for {label}: {e}")
        raise
    finally:
        await body.aclose()


async def ranged_response(
    label: str,
    size: int,
    opener: Opener,
    range_header: Optional[str],
    settings: StreamingConfig,
    media_type: Optional[str] = None,
) -> Response:
    """200/206/416 response for a resource of known size.

    Raises:
        OSError: From opener, before any headers are sent
    """
    try:
        byte_range = parse_range(range_header, size, settings.chunk_size)
    except RangeNotSatisfiableError as e:
        logger.warning(f"{e} for {label}")
        return Response(
            status_code=416,
            headers={"Content-Range": unsatisfied_content_range(size)},
        )

    headers = {
        "Accept-Ranges": "bytes",
        "Cache-Control": f"public, max-age={settings.cache_max_age}",
    }
    if byte_range is None:
        start, end, status_code = 0, size - 1, 200
        headers["Content-Length"] = str(size)
    else:
        start, end, status_code = byte_range.start, byte_range.end, 206
        headers["Content-Length"] = str(byte_range.length)
        headers["Content-Range"] = byte_range.content_range

    body = await opener(start, end)
    return StreamingResponse(
        _guard(body, label),
        status_code=status_code,
        media_type=media_type or get_mime_type(label),
        headers=headers,
    )
