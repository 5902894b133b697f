"""FastAPI application for the liftlog sync server."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .. import __version__
from ..db.engine import get_server_db_path, init_db
from ..log import get_logger
from .routers import health, sync

logger = get_logger(__name__)


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite file holding every device's documents; defaults to
            the server database in the data directory
    """
    db_path = db_path or get_server_db_path()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup and shutdown."""
        await init_db(db_path)
        logger.info("sync server database ready", db_path=str(db_path))
        yield

    app = FastAPI(
        title="liftlog",
        description="Sync server for the liftlog workout tracker",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db_path = db_path

    app.include_router(health.router)
    app.include_router(sync.router)

    return app
