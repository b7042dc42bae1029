"""FastAPI dependencies: components built at startup and kept on app.state."""

from fastapi import Request

from homestream.core.config import Config
from homestream.domain.auth import PasswordVerifier
from homestream.domain.library.content_store import ContentStore
from homestream.domain.library.cover_cache import CoverCache
from homestream.domain.library.service import LibraryService
from homestream.domain.transcode.orchestrator import TranscodeOrchestrator


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def get_covers(request: Request) -> CoverCache:
    return request.app.state.covers


def get_library(request: Request) -> LibraryService:
    return request.app.state.library


def get_orchestrator(request: Request) -> TranscodeOrchestrator:
    return request.app.state.orchestrator


def get_verifier(request: Request) -> PasswordVerifier:
    return request.app.state.verifier
