"""
Small persistence layer for cache state.

Every write replaces the whole file (write to temp, then os.replace), so a
crash mid-write leaves the previous document intact and readers never see a
half-written file.
"""

import json
import os
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class DocumentStore(Protocol):
    """A durable JSON-compatible document. Swap in a real key/value store here."""

    def load(self) -> dict[str, Any]: ...

    def save(self, document: dict[str, Any]) -> None: ...


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to path with whole-file replace semantics."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


class JsonDocumentStore:
    """DocumentStore backed by one JSON file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> dict[str, Any]:
        """Read the document, treating a missing or corrupt file as empty."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unreadable cache file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Discarding cache file with unexpected shape: {self.path}")
            return {}
        return data

    def save(self, document: dict[str, Any]) -> None:
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        atomic_write_bytes(self.path, payload.encode("utf-8"))
