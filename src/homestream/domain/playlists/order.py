"""
Saved playback order for the library listing.

The order is a JSON array of filenames kept next to the music files. Names
not in the saved order (fresh uploads) sort first, newest first; the rest
follow in saved order.
"""

import json
from pathlib import Path
from typing import Optional

from loguru import logger

from homestream.domain.library.storage import atomic_write_bytes


class PlaylistOrderStore:
    """Reads and writes the saved order file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[list[str]]:
        """Saved order, or None when no usable order file exists."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error reading playlist order: {e}")
            return None
        if not text.strip():
            return None
        try:
            order = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Error reading playlist order: {e}")
            return None
        if not isinstance(order, list):
            logger.warning(f"Ignoring playlist order with unexpected shape: {self.path}")
            return None
        return [name for name in order if isinstance(name, str)]

    def save(self, order: list[str]) -> None:
        payload = json.dumps(order, ensure_ascii=False, indent=2)
        atomic_write_bytes(self.path, payload.encode("utf-8"))
        logger.info(f"Saved playlist order ({len(order)} tracks)")


def sort_entries(
    entries: list[tuple[str, float]], order: Optional[list[str]]
) -> list[str]:
    """Filenames from (name, mtime) pairs in listing order.

    Without a saved order everything is newest first.
    """
    if order is None:
        return [name for name, _ in sorted(entries, key=lambda e: e[1], reverse=True)]

    positions: dict[str, int] = {}
    for index, name in enumerate(order):
        positions.setdefault(name, index)

    unordered = [e for e in entries if e[0] not in positions]
    ordered = [e for e in entries if e[0] in positions]
    unordered.sort(key=lambda e: e[1], reverse=True)
    ordered.sort(key=lambda e: positions[e[0]])
    return [name for name, _ in unordered + ordered]
