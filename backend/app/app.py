"""
Beyond Words - FastAPI Backend
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import httpx

from app.config import Settings, settings as default_settings
from app.database.db import LocalCache
from app.logging import setup_logging, get_logger
from app.models import Template
from app.routers import (
    folders,
    inspiration,
    notes,
    remote,
    stats,
    workspace,
)
from app.services.coalescer import WriteCoalescer
from app.services.config_store import ConfigStore
from app.services.remote import ConnectionManager
from app.services.seed import templates
from app.services.sync import SyncService
from app.services.workspace import WorkspaceService

logger = get_logger('main')


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings.DEBUG)
    logger.info("Starting Beyond Words API")

    cache = LocalCache(settings.LOCAL_CACHE_PATH)
    cache.init_db()
    app.state.local_cache = cache

    # Composition root: one of each, shared by every request
    config_store = ConfigStore(cache, settings=settings)
    connections = ConnectionManager(
        config_store,
        settings=settings,
        transport=app.state.remote_transport,
    )
    coalescer = WriteCoalescer(delay=settings.SYNC_DEBOUNCE_SECONDS)
    app.state.connections = connections
    app.state.coalescer = coalescer

    app.state.sync_service = SyncService(
        cache=cache,
        config_store=config_store,
        connections=connections,
        coalescer=coalescer,
    )
    app.state.workspace_service = WorkspaceService(
        sync=app.state.sync_service,
        settings=settings,
    )
    sync_state = "enabled" if config_store.is_configured() else "disabled"
    logger.info(f"Services initialized (remote sync {sync_state})")

    yield

    logger.info("Shutting down application")
    await coalescer.shutdown()
    await connections.aclose()
    cache.close()


def create_app(
    settings: Settings | None = None,
    remote_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Beyond Words API",
        description="Local-first persistence and sync for a personal writing tool",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings or default_settings
    app.state.remote_transport = remote_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workspace.router, prefix="/api/users", tags=["Workspace"])
    app.include_router(notes.router, prefix="/api/users", tags=["Notes"])
    app.include_router(folders.router, prefix="/api/users", tags=["Folders"])
    app.include_router(inspiration.router, prefix="/api/users", tags=["Inspiration"])
    app.include_router(stats.router, prefix="/api/users", tags=["Stats"])
    app.include_router(remote.router, prefix="/api/remote", tags=["Remote"])

    @app.get("/api/templates", response_model=list[Template])
    async def list_templates():
        return templates()

    @app.get("/health")
    async def health_check():
        sync_service = getattr(app.state, "sync_service", None)
        return {
            "status": "healthy",
            "service": "beyond-words-sync",
            "remote_configured": sync_service.is_configured() if sync_service else False,
            "pending_writes": len(sync_service.coalescer.pending_keys) if sync_service else 0,
        }

    @app.get("/")
    async def root():
        return {
            "name": "Beyond Words API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app
