"""HLS endpoints: on-demand transcode, status polling and segment delivery.

Clients request /hls/{filename}; a 202 means the transcode is running and
they should poll /hls-status/{filename} until it reports done.
"""

from typing import Optional

import anyio
from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse, Response
from loguru import logger

from homestream.core.config import Config
from homestream.core.errors import (
    ArtifactNotFoundError,
    InvalidFilenameError,
    InvalidSegmentError,
    SourceNotFoundError,
    TranscodeLaunchError,
)
from homestream.domain.library.content_store import open_byte_range
from homestream.domain.transcode.orchestrator import TranscodeOrchestrator

from ..deps import get_config, get_orchestrator
from ..schemas import TranscodeStatus
from ..streaming import ranged_response

router = APIRouter()

MANIFEST_MEDIA_TYPE = "application/vnd.apple.mpegurl"
SEGMENT_MEDIA_TYPE = "video/mp2t"


@router.get("/hls/{filename}")
async def get_manifest(
    filename: str,
    orchestrator: TranscodeOrchestrator = Depends(get_orchestrator),
):
    try:
        status = await orchestrator.request_artifact(filename)
    except InvalidFilenameError as e:
        logger.warning(f"Rejected HLS request: {e}")
        raise HTTPException(400, "Invalid filename")
    except SourceNotFoundError:
        raise HTTPException(404, "Audio file not found")
    except TranscodeLaunchError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to start transcoding", "errorDetail": e.detail},
        )

    if not status.ready:
        body = TranscodeStatus(state=status.state, progress=status.progress)
        return JSONResponse(
            status_code=202,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    try:
        manifest = await anyio.Path(status.manifest_path).read_bytes()
    except FileNotFoundError:
        # Invalidated between the check and the read
        raise HTTPException(404, "Stream no longer available")
    return Response(
        manifest,
        media_type=MANIFEST_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


@router.get(
    "/hls-status/{filename}",
    response_model=TranscodeStatus,
    response_model_exclude_none=True,
)
async def get_status(
    filename: str,
    orchestrator: TranscodeOrchestrator = Depends(get_orchestrator),
):
    try:
        status = await orchestrator.poll_status(filename)
    except InvalidFilenameError as e:
        logger.warning(f"Rejected status request: {e}")
        raise HTTPException(400, "Invalid filename")
    return TranscodeStatus(
        state=status.state, progress=status.progress, error_detail=status.error_detail
    )


@router.get("/hls/{filename}/{segment_id:path}")
async def get_segment(
    filename: str,
    segment_id: str,
    range_header: Optional[str] = Header(None, alias="range"),
    orchestrator: TranscodeOrchestrator = Depends(get_orchestrator),
    config: Config = Depends(get_config),
):
    try:
        path = await orchestrator.fetch_segment(filename, segment_id)
        size = (await anyio.Path(path).stat()).st_size

        async def opener(start: int, end: int):
            return await open_byte_range(
                path, start, end, config.streaming.read_block_size
            )

        return await ranged_response(
            f"{filename}/{segment_id}",
            size,
            opener,
            range_header,
            config.streaming,
            media_type=SEGMENT_MEDIA_TYPE,
        )
    except (InvalidSegmentError, InvalidFilenameError) as e:
        logger.warning(f"Rejected segment request: {e}")
        raise HTTPException(400, "Invalid segment")
    except (ArtifactNotFoundError, FileNotFoundError):
        raise HTTPException(404, "Segment not found")
