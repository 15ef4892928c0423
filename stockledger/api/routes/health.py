"""Readiness endpoint with a database probe."""

import time

from fastapi import APIRouter

from stockledger import __version__
from stockledger.config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_started = time.monotonic()


async def _database_status() -> str:
    from stockledger.infrastructure.storage.sqlite import get_connection

    try:
        async with get_connection() as conn:
            await conn.execute("SELECT COUNT(*) FROM schema_migrations")
    except Exception as e:
        logger.warning("health_database_unreachable", error=str(e))
        return "unavailable"
    return "ok"


@router.get("")
async def readiness() -> dict:
    """Service status, uptime and whether the inventory database answers."""
    database = await _database_status()
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "version": __version__,
        "uptime_seconds": round(time.monotonic() - _started, 2),
        "database": database,
    }
