"""Library domain - source files, tag metadata and cover art.

This domain handles:
- The flat directory of source audio files (listing, range reads, upload, delete)
- Tag and stream-info extraction with Mutagen
- The mtime-checked metadata cache and the on-disk cover cache

LibraryService lives in .service and is imported from there directly, since
it depends on the transcode domain.
"""

from .content_store import ContentStore, open_byte_range
from .cover_cache import CoverCache
from .metadata import read_audio_metadata, read_cover
from .metadata_cache import MetadataCache
from .models import AudioMetadata, FileStat, Picture, TrackRecord
from .storage import JsonDocumentStore, atomic_write_bytes

__all__ = [
    "AudioMetadata",
    "ContentStore",
    "CoverCache",
    "FileStat",
    "JsonDocumentStore",
    "MetadataCache",
    "Picture",
    "TrackRecord",
    "atomic_write_bytes",
    "open_byte_range",
    "read_audio_metadata",
    "read_cover",
]
