from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from homestream import __version__
from homestream.core.config import Config, ensure_directories, load_config
from homestream.domain.auth import PasswordVerifier
from homestream.domain.library.content_store import ContentStore
from homestream.domain.library.cover_cache import CoverCache
from homestream.domain.library.metadata_cache import MetadataCache
from homestream.domain.library.service import LibraryService
from homestream.domain.library.storage import JsonDocumentStore
from homestream.domain.playlists.order import PlaylistOrderStore
from homestream.domain.transcode.artifacts import ArtifactStore
from homestream.domain.transcode.ffmpeg import FFmpegTranscoder
from homestream.domain.transcode.models import Transcoder
from homestream.domain.transcode.orchestrator import TranscodeOrchestrator


def build_components(app: FastAPI, config: Config, transcoder: Optional[Transcoder]) -> None:
    """Construct every long-lived component and attach it to app.state."""
    ensure_directories(config)
    music_dir = Path(config.library.music_dir)
    cache_dir = config.cache.resolve_dir()

    store = ContentStore(
        music_dir, config.library.supported_formats, config.streaming.read_block_size
    )
    metadata = MetadataCache(store, JsonDocumentStore(cache_dir / "metadata.json"))
    metadata.load()
    covers = CoverCache(store, cache_dir / "covers")
    orchestrator = TranscodeOrchestrator(
        store,
        ArtifactStore(cache_dir / "hls"),
        transcoder or FFmpegTranscoder(config.transcode),
        duration_lookup=metadata.duration,
    )
    library = LibraryService(
        store,
        metadata,
        covers,
        orchestrator,
        PlaylistOrderStore(music_dir / config.library.playlist_file),
    )

    app.state.config = config
    app.state.store = store
    app.state.metadata = metadata
    app.state.covers = covers
    app.state.orchestrator = orchestrator
    app.state.library = library
    app.state.verifier = PasswordVerifier(config.server.password)


def create_app(
    config: Optional[Config] = None, transcoder: Optional[Transcoder] = None
) -> FastAPI:
    """Application factory.

    Run directly with: uvicorn --factory web.backend.main:create_app
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        build_components(app, config, transcoder)
        logger.info(f"Music directory: {config.library.music_dir}")
        yield
        await app.state.orchestrator.shutdown()
        await app.state.metadata.flush()
        logger.info("Shutdown complete")

    app = FastAPI(title="homestream", version=__version__, lifespan=lifespan)

    if config.server.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    from web.backend.routers import auth, hls, library, playlists, stream

    app.include_router(stream.router, tags=["stream"])
    app.include_router(hls.router, tags=["hls"])
    app.include_router(library.router, prefix="/api", tags=["library"])
    app.include_router(playlists.router, prefix="/api", tags=["playlists"])
    app.include_router(auth.router, prefix="/api", tags=["auth"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app
