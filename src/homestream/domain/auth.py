"""Shared-password check guarding uploads and deletes."""

import secrets
from typing import Optional


class PasswordVerifier:
    """Compares candidates against the configured password.

    An empty configured password rejects every candidate, so a server started
    without one cannot be written to.
    """

    def __init__(self, password: str):
        self._password = password

    @property
    def configured(self) -> bool:
        return bool(self._password)

    def check(self, candidate: Optional[str]) -> bool:
        if not self._password or candidate is None:
            return False
        return secrets.compare_digest(
            candidate.encode("utf-8"), self._password.encode("utf-8")
        )
