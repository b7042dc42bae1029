"""Password check used by the upload and delete dialogs."""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from homestream.domain.auth import PasswordVerifier

from ..deps import get_verifier
from ..schemas import PasswordRequest, VerifyPasswordResponse

router = APIRouter()


@router.post("/verify-password", response_model=VerifyPasswordResponse)
async def verify_password(
    payload: Optional[PasswordRequest] = Body(None),
    verifier: PasswordVerifier = Depends(get_verifier),
):
    if verifier.check(payload.password if payload else None):
        return VerifyPasswordResponse(verified=True)
    body = VerifyPasswordResponse(verified=False, error="Wrong password")
    return JSONResponse(status_code=401, content=body.model_dump(by_alias=True))
