"""Direct file playback with HTTP range support."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from loguru import logger

from homestream.core.config import Config
from homestream.core.errors import InvalidFilenameError, SourceNotFoundError
from homestream.domain.library.content_store import ContentStore

from ..deps import get_config, get_store
from ..streaming import ranged_response

router = APIRouter()


@router.get("/music/{filename}")
async def stream_music(
    filename: str,
    range_header: Optional[str] = Header(None, alias="range"),
    store: ContentStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    try:
        stat = await store.stat(filename)

        async def opener(start: int, end: int):
            return await store.open_range(filename, start, end)

        return await ranged_response(
            filename, stat.size, opener, range_header, config.streaming
        )
    except InvalidFilenameError as e:
        logger.warning(f"Rejected stream request: {e}")
        raise HTTPException(400, "Invalid filename")
    except SourceNotFoundError:
        raise HTTPException(404, "Audio file not found")
    except OSError as e:
        logger.exception(f"Failed to open {filename} for streaming")
        raise HTTPException(500, f"Streaming failed: {e}")
