"""
Music library domain models.

Contains data structures for tracks, extracted metadata and cover art.
"""

from typing import NamedTuple, Optional


class TrackRecord(NamedTuple):
    """Cached listing metadata for one audio file.

    Derived from the file's tags and keyed by filename. mtime_at_scan is the
    file's modification time when the tags were read; a different mtime on
    disk means the record is stale.
    """

    name: str  # Filename inside the music directory (unique key)
    title: str
    artist: str = ""
    album: str = ""
    has_cover: bool = False
    cover_ref: Optional[str] = None  # Opaque id for the cover endpoint
    mtime_at_scan: float = 0.0
    duration: Optional[float] = None  # in seconds

    def to_dict(self) -> dict:
        return self._asdict()

    @classmethod
    def from_dict(cls, data: dict) -> "TrackRecord":
        return cls(**{k: data[k] for k in cls._fields if k in data})


class Picture(NamedTuple):
    """Embedded cover art."""

    mime_type: str
    data: bytes


class AudioMetadata(NamedTuple):
    """Everything the metadata reader extracts from one audio file."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    picture: Optional[Picture] = None
    duration: Optional[float] = None  # in seconds
    bitrate: Optional[int] = None  # bits per second
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    bits_per_sample: Optional[int] = None
    codec: Optional[str] = None
    container: Optional[str] = None
    track_number: Optional[int] = None
    disc_number: Optional[int] = None
    composer: Optional[str] = None
    comment: Optional[str] = None


class FileStat(NamedTuple):
    """Size and modification time of a stored file."""

    size: int
    mtime: float
