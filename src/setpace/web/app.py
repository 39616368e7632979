"""FastAPI application for the setpace API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .. import __version__
from ..clock import SystemClock
from ..db.engine import get_db_path, init_db
from ..db.repositories import SessionRepository
from ..services.active_session import ActiveSessionPublisher
from ..services.session_tracker import SessionTracker
from .routers import session, streak

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database, pick up a session in progress, flush on exit."""
    await init_db(app.state.db_path)

    active = await SessionRepository(app.state.db_path).get_active_session()
    if active is not None:
        app.state.tracker = await SessionTracker.resume(
            active.id,
            db_path=app.state.db_path,
            clock=app.state.clock,
            publisher=app.state.publisher,
        )
        logger.info("Resumed session %s", active.id)

    yield

    tracker = app.state.tracker
    if tracker is not None:
        await tracker.flush()


def create_app(db_path: Path | None = None, clock=None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="setpace",
        description="Workout session tracker",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.db_path = db_path or get_db_path()
    app.state.clock = clock or SystemClock()
    app.state.publisher = ActiveSessionPublisher()
    app.state.tracker = None

    app.include_router(session.router)
    app.include_router(streak.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
