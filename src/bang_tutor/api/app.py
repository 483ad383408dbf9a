"""
FastAPI application factory.

Manages the lifecycle of:
- Database connection and transcript store
- Content store and git committer
- The session manager behind the WebSocket bridge
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..agent import ProcessFactory, SessionManager, llm_process_factory
from ..config import Settings, get_settings
from ..content import ContentStore, GitCommitter
from ..llm import create_llm
from ..models import init_database
from ..store import TranscriptStore
from .ws import router as ws_router

logger = structlog.get_logger()


def _default_process_factory(settings: Settings) -> ProcessFactory:
    return llm_process_factory(
        lambda: create_llm(settings=settings),
        max_tool_iterations=settings.max_tool_iterations,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings

    # Initialize database
    session_maker = await init_database(settings.database_url)
    store = TranscriptStore(session_maker)
    logger.info("Database initialized", url=settings.database_url)

    content = ContentStore(settings.content_path)
    committer = None
    if settings.git_enabled:
        committer = GitCommitter(
            settings.git_repo_dir,
            settings.content_path,
            push_enabled=settings.git_push_enabled,
        )

    manager = SessionManager(
        store,
        content,
        app.state.process_factory or _default_process_factory(settings),
        committer=committer,
        native_language=settings.native_language,
        tool_call_timeout=settings.tool_call_timeout_seconds,
    )
    app.state.store = store
    app.state.session_manager = manager
    logger.info("Session manager ready", content_root=str(content.root), git_enabled=settings.git_enabled)

    yield

    # Shutdown
    await manager.shutdown()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    process_factory: ProcessFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Language tutor session bridge",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.process_factory = process_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Health
    # ------------------------------------------------------------------ #
    @app.get("/api/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        manager: SessionManager | None = getattr(request.app.state, "session_manager", None)
        return {
            "status": "healthy",
            "version": __version__,
            "llm_configured": bool(
                settings.anthropic_api_key
                or settings.openai_api_key
                or settings.openrouter_api_key
            ),
            "git_enabled": settings.git_enabled,
            "session_active": manager is not None and manager.active,
            "database": "connected",
        }

    # ------------------------------------------------------------------ #
    # Session history
    # ------------------------------------------------------------------ #
    @app.get("/api/sessions")
    async def list_sessions(request: Request):
        """Most recent sessions, newest first."""
        store: TranscriptStore = request.app.state.store
        sessions = await store.list_sessions(limit=20)
        return {
            "sessions": [
                {
                    "id": s.id,
                    "topic": s.topic,
                    "isActive": s.is_active,
                    "createdAt": s.created_at.isoformat() if s.created_at else None,
                }
                for s in sessions
            ]
        }

    @app.get("/api/sessions/{session_id}/messages")
    async def list_session_messages(session_id: str, request: Request):
        """Transcript of one session in insertion order."""
        store: TranscriptStore = request.app.state.store
        if await store.get_session(session_id) is None:
            raise HTTPException(status_code=404, detail="Session not found")

        messages = await store.list_messages(session_id)
        return {"messages": [m.to_wire() for m in messages]}

    app.include_router(ws_router)

    return app
