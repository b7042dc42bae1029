"""
Audio metadata extraction and display formatting.

Reads tags, technical stream info and embedded cover art from audio files
using Mutagen. Callers decide how to recover from MetadataParseError.
"""

import base64
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.flac import Picture as FlacPicture
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Cover

from homestream.core.errors import MetadataParseError

from .models import AudioMetadata, Picture

# Tag names per field: ID3 (MP3/WAV/AIFF), MP4 atoms, Vorbis comments (both cases)
TITLE_TAGS = ["TIT2", "\xa9nam", "TITLE", "title"]
ARTIST_TAGS = ["TPE1", "\xa9ART", "ARTIST", "artist"]
ALBUM_TAGS = ["TALB", "\xa9alb", "ALBUM", "album"]
GENRE_TAGS = ["TCON", "\xa9gen", "GENRE", "genre"]
YEAR_TAGS = ["TDRC", "TYER", "\xa9day", "DATE", "YEAR", "date", "year"]
TRACK_TAGS = ["TRCK", "trkn", "TRACKNUMBER", "tracknumber"]
DISC_TAGS = ["TPOS", "disk", "DISCNUMBER", "discnumber"]
COMPOSER_TAGS = ["TCOM", "\xa9wrt", "COMPOSER", "composer"]
COMMENT_TAGS = ["\xa9cmt", "COMMENT", "comment", "DESCRIPTION", "description"]

MP4_COVER_MIME = {
    MP4Cover.FORMAT_JPEG: "image/jpeg",
    MP4Cover.FORMAT_PNG: "image/png",
}


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                # Handle different formats
                if isinstance(value, list) and value:
                    return str(value[0])
                return str(value)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def _get_number(audio_file: Any, tag_names: list[str]) -> Optional[int]:
    """Get a leading integer from tags like "3/12", "2004-05-01" or MP4 (3, 12) tuples."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
        except (KeyError, ValueError):
            continue
        if not value:
            continue
        if isinstance(value, list):
            value = value[0]
        if isinstance(value, tuple):
            value = value[0]
        text = str(value).strip()
        for sep in ("/", "-"):
            text = text.split(sep)[0]
        try:
            return int(text)
        except ValueError:
            continue
    return None


def _get_comment(audio_file: Any) -> Optional[str]:
    tags = getattr(audio_file, "tags", None)
    if isinstance(tags, ID3):
        frames = tags.getall("COMM")
        return str(frames[0]) if frames else None
    return get_tag_value(audio_file, COMMENT_TAGS)


def extract_picture(audio_file: Any) -> Optional[Picture]:
    """Return the first embedded picture of a Mutagen file object, if any."""
    tags = getattr(audio_file, "tags", None)

    # MP3 / WAV / AIFF
    if isinstance(tags, ID3):
        frames = tags.getall("APIC")
        if frames:
            return Picture(mime_type=frames[0].mime or "image/jpeg", data=frames[0].data)
        return None

    # FLAC keeps pictures outside the Vorbis comment block
    pictures = getattr(audio_file, "pictures", None)
    if pictures:
        return Picture(mime_type=pictures[0].mime or "image/jpeg", data=pictures[0].data)

    if tags is None:
        return None

    # MP4 / M4A
    try:
        covers = tags.get("covr")
    except (KeyError, ValueError):
        covers = None
    if covers:
        cover = covers[0]
        mime = MP4_COVER_MIME.get(getattr(cover, "imageformat", None), "image/jpeg")
        return Picture(mime_type=mime, data=bytes(cover))

    # Ogg Vorbis / Opus
    try:
        blocks = tags.get("metadata_block_picture")
    except (KeyError, ValueError):
        blocks = None
    if blocks:
        try:
            picture = FlacPicture(base64.b64decode(blocks[0]))
            return Picture(mime_type=picture.mime or "image/jpeg", data=picture.data)
        except (ValueError, MutagenError) as e:
            logger.debug(f"Unreadable Ogg picture block: {e}")

    return None


def _codec_name(audio_file: Any) -> Optional[str]:
    info = getattr(audio_file, "info", None)
    if info is None:
        return None
    codec = getattr(info, "codec", None)
    if codec:
        return str(codec)
    layer = getattr(info, "layer", None)
    version = getattr(info, "version", None)
    if layer and version:
        return f"MPEG {version:g} Layer {layer}"
    return type(info).__name__.replace("Info", "") or None


def _open(path: str) -> Any:
    try:
        audio_file = MutagenFile(path)
    except (MutagenError, OSError) as e:
        raise MetadataParseError(f"Could not read {path}: {e}") from e
    if audio_file is None:
        raise MetadataParseError(f"Unsupported audio format: {path}")
    return audio_file


def read_audio_metadata(path: str) -> AudioMetadata:
    """Extract tags, stream info and cover art from an audio file.

    Raises:
        MetadataParseError: If Mutagen cannot read the file
    """
    audio_file = _open(path)

    info = getattr(audio_file, "info", None)
    duration = getattr(info, "length", None)
    bitrate = getattr(info, "bitrate", None)

    return AudioMetadata(
        title=get_tag_value(audio_file, TITLE_TAGS),
        artist=get_tag_value(audio_file, ARTIST_TAGS),
        album=get_tag_value(audio_file, ALBUM_TAGS),
        year=_get_number(audio_file, YEAR_TAGS),
        genre=get_tag_value(audio_file, GENRE_TAGS),
        picture=extract_picture(audio_file),
        duration=float(duration) if duration else None,
        bitrate=int(bitrate) if bitrate else None,
        sample_rate=getattr(info, "sample_rate", None) or None,
        channels=getattr(info, "channels", None) or None,
        bits_per_sample=getattr(info, "bits_per_sample", None) or None,
        codec=_codec_name(audio_file),
        container=type(audio_file).__name__,
        track_number=_get_number(audio_file, TRACK_TAGS),
        disc_number=_get_number(audio_file, DISC_TAGS),
        composer=get_tag_value(audio_file, COMPOSER_TAGS),
        comment=_get_comment(audio_file),
    )


def read_cover(path: str) -> Optional[Picture]:
    """Extract only the embedded cover art.

    Raises:
        MetadataParseError: If Mutagen cannot read the file
    """
    return extract_picture(_open(path))


def format_duration(seconds: Optional[float]) -> str:
    """Format duration in seconds as M:SS."""
    if not seconds:
        return "0:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def format_size(bytes_size: int) -> str:
    """Format file size in bytes to human readable string."""
    if bytes_size == 0:
        return "0 B"
    size = float(bytes_size)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.2f}".rstrip("0").rstrip(".") + f" {unit}"
        size /= 1024
    return f"{size:.2f}".rstrip("0").rstrip(".") + " TB"


def format_bitrate(bitrate: Optional[int]) -> str:
    if not bitrate:
        return "Unknown"
    return f"{round(bitrate / 1000)} kbps"


def format_sample_rate(sample_rate: Optional[int]) -> str:
    if not sample_rate:
        return "Unknown"
    return f"{sample_rate / 1000:.1f} kHz"


def channel_name(channels: Optional[int]) -> str:
    """Human name for a channel count."""
    if channels == 1:
        return "Mono"
    if channels == 2:
        return "Stereo"
    if channels == 6:
        return "5.1 Surround"
    return f"{channels} channels" if channels else "Unknown"


def filename_defaults(name: str) -> dict[str, Any]:
    """Listing fields used when tags are missing or unreadable."""
    return {"title": name, "artist": "", "album": ""}


def get_suffix(name: str) -> str:
    return Path(name).suffix.lower()
