"""Streaming domain - byte-range resolution for direct file playback."""

from .ranges import ByteRange, parse_range, unsatisfied_content_range

__all__ = ["ByteRange", "parse_range", "unsatisfied_content_range"]
