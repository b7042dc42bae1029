from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from homestream.domain.transcode.models import JobState


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrackSummary(CamelModel):
    """One entry of the library listing."""

    name: str
    url: str
    title: str
    artist: str = ""
    album: str = ""
    has_cover: bool = False
    cover_id: Optional[str] = None


class TrackInfo(CamelModel):
    """Detailed audio info with display-ready strings."""

    file_name: str
    file_size: int
    file_size_formatted: str
    title: str
    artist: str
    album: str
    year: Optional[int] = None
    genre: str
    format: str
    codec: str
    duration: float
    duration_formatted: str
    bitrate: int
    bitrate_formatted: str
    sample_rate: int
    sample_rate_formatted: str
    channels: int
    channels_formatted: str
    bits_per_sample: int
    track_number: Optional[int] = None
    disc_number: Optional[int] = None
    composer: Optional[str] = None
    comment: Optional[str] = None


class PasswordRequest(CamelModel):
    password: Optional[str] = None


class VerifyPasswordResponse(CamelModel):
    verified: bool
    error: Optional[str] = None


class PlaylistOrder(CamelModel):
    order: list[str]


class SuccessResponse(CamelModel):
    success: bool = True
    message: str


class UploadedFile(CamelModel):
    file_name: str
    path: str


class UploadResponse(CamelModel):
    message: str
    files: list[UploadedFile]


class TranscodeStatus(CamelModel):
    """HLS job state as seen by polling clients."""

    state: JobState
    progress: int = 0  # Percentage 0-100, advisory
    error_detail: Optional[str] = None
