"""Library endpoints: listing, detailed info, covers, upload and delete."""

from typing import AsyncIterator, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from loguru import logger

from homestream.core.config import Config
from homestream.core.errors import (
    CoverNotFoundError,
    InvalidFilenameError,
    MetadataParseError,
    SourceNotFoundError,
)
from homestream.core.path_security import validate_filename
from homestream.domain.auth import PasswordVerifier
from homestream.domain.library.cover_cache import CoverCache
from homestream.domain.library.service import LibraryService, track_url

from ..deps import get_config, get_covers, get_library, get_verifier
from ..schemas import (
    PasswordRequest,
    SuccessResponse,
    TrackInfo,
    TrackSummary,
    UploadedFile,
    UploadResponse,
)

router = APIRouter()

UPLOAD_READ_SIZE = 1024 * 1024


@router.get("/music", response_model=list[TrackSummary])
async def list_music(library: LibraryService = Depends(get_library)):
    try:
        tracks = await library.list_tracks()
        return [TrackSummary(**track) for track in tracks]
    except OSError as e:
        logger.exception("Error reading music directory")
        raise HTTPException(500, f"Could not read music library: {e}")


@router.get("/info/{filename}", response_model=TrackInfo)
async def get_track_info(filename: str, library: LibraryService = Depends(get_library)):
    try:
        return TrackInfo(**await library.track_info(filename))
    except InvalidFilenameError as e:
        logger.warning(f"Rejected info request: {e}")
        raise HTTPException(400, "Invalid filename")
    except SourceNotFoundError:
        raise HTTPException(404, "File not found")
    except MetadataParseError as e:
        logger.error(f"Error getting audio info for {filename}: {e}")
        raise HTTPException(500, "Could not read audio info")


@router.get("/cover/{filename}")
async def get_cover(
    filename: str,
    covers: CoverCache = Depends(get_covers),
    config: Config = Depends(get_config),
):
    try:
        picture = await covers.get(filename)
    except InvalidFilenameError as e:
        logger.warning(f"Rejected cover request: {e}")
        raise HTTPException(400, "Invalid filename")
    except CoverNotFoundError:
        raise HTTPException(404, "No cover image")
    return Response(
        picture.data,
        media_type=picture.mime_type,
        headers={"Cache-Control": f"public, max-age={config.streaming.cache_max_age}"},
    )


async def _read_upload(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(UPLOAD_READ_SIZE)
        if not chunk:
            break
        yield chunk


def _upload_name(upload: UploadFile) -> str:
    """Filename to store an upload under.

    Raises:
        InvalidFilenameError: If the client-supplied name is not a bare filename
    """
    return validate_filename(unquote(upload.filename or ""))


@router.post("/upload", response_model=UploadResponse)
async def upload_music(
    music_files: list[UploadFile] = File(default=[], alias="musicFiles"),
    password: Optional[str] = Form(None),
    library: LibraryService = Depends(get_library),
    verifier: PasswordVerifier = Depends(get_verifier),
    config: Config = Depends(get_config),
):
    if not verifier.check(password):
        logger.warning("Upload rejected: wrong password")
        raise HTTPException(401, "Wrong password, operation rejected")
    if not music_files:
        raise HTTPException(400, "No files were uploaded")
    if len(music_files) > config.library.max_upload_files:
        raise HTTPException(
            400, f"Too many files (max {config.library.max_upload_files})"
        )

    names = []
    for upload in music_files:
        if not (upload.content_type or "").startswith("audio/"):
            raise HTTPException(400, f"Only audio files can be uploaded: {upload.filename}")
        try:
            names.append(_upload_name(upload))
        except InvalidFilenameError as e:
            logger.warning(f"Upload rejected: {e}")
            raise HTTPException(400, f"Invalid filename: {upload.filename}")

    stored = []
    for name, upload in zip(names, music_files):
        try:
            await library.store_upload(name, _read_upload(upload))
        except OSError as e:
            logger.exception(f"Failed to store upload {name}")
            raise HTTPException(500, f"Failed to store {name}: {e}")
        finally:
            await upload.close()
        stored.append(UploadedFile(file_name=name, path=track_url(name)))

    return UploadResponse(
        message=f"{len(stored)} file(s) uploaded successfully", files=stored
    )


@router.delete("/music/{filename}", response_model=SuccessResponse)
async def delete_music(
    filename: str,
    payload: Optional[PasswordRequest] = Body(None),
    library: LibraryService = Depends(get_library),
    verifier: PasswordVerifier = Depends(get_verifier),
):
    if not verifier.check(payload.password if payload else None):
        logger.warning(f"Delete rejected for {filename}: wrong password")
        raise HTTPException(401, "Wrong password, operation rejected")
    try:
        await library.delete_track(filename)
    except InvalidFilenameError as e:
        logger.warning(f"Rejected delete request: {e}")
        raise HTTPException(400, "Invalid filename")
    except SourceNotFoundError:
        raise HTTPException(404, "File not found")
    except OSError as e:
        logger.exception(f"Error deleting {filename}")
        raise HTTPException(500, f"Error deleting file: {e}")
    return SuccessResponse(message=f"Deleted {filename}")
