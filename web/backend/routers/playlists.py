"""Saved listing order."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from loguru import logger

from homestream.domain.library.service import LibraryService

from ..deps import get_library
from ..schemas import PlaylistOrder, SuccessResponse

router = APIRouter()


@router.get("/playlist/order", response_model=PlaylistOrder)
async def get_playlist_order(library: LibraryService = Depends(get_library)):
    return PlaylistOrder(order=await library.get_order())


@router.post("/playlist/order", response_model=SuccessResponse)
async def save_playlist_order(
    payload: Any = Body(None),
    library: LibraryService = Depends(get_library),
):
    # Validated by hand so a bad payload is a 400, not a 422
    order = payload.get("order") if isinstance(payload, dict) else None
    if not isinstance(order, list) or not all(isinstance(n, str) for n in order):
        raise HTTPException(400, "Invalid data format: expected {order: [filenames]}")
    try:
        await library.save_order(order)
    except OSError as e:
        logger.exception("Error saving playlist order")
        raise HTTPException(500, f"Could not save playlist order: {e}")
    return SuccessResponse(message="Playlist order saved")
