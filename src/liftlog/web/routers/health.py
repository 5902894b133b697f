"""Health check route."""

import aiosqlite
from fastapi import APIRouter, Request

from ... import __version__
from ...log import get_logger

router = APIRouter(prefix="/api", tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
async def health(request: Request):
    """Report whether the document store is usable."""
    database = True
    try:
        async with aiosqlite.connect(request.app.state.db_path) as db:
            await db.execute("SELECT 1 FROM users LIMIT 1")
    except aiosqlite.Error as e:
        logger.warning("database health check failed", error=str(e))
        database = False

    return {
        "status": "ok" if database else "degraded",
        "version": __version__,
        "services": {"database": database},
    }
