"""Health check endpoint.

Learn: Answers inside the standard envelope with server uptime and the
reachability of Postgres (a live SELECT 1) and Redis. When the
DatabaseMonitor runs (normal server startup) its view of the connection,
including consecutive reconnect failures, is reported as well.
"""

import time

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep import __version__
from notekeep.cache.redis import redis_status
from notekeep.db.engine import get_db
from notekeep.schemas.envelope import ok

logger = structlog.get_logger()

router = APIRouter()

_STARTED = time.monotonic()


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.warning("health.db_unreachable", error=str(e))
        db_status = "disconnected"

    data = {
        "status": "healthy" if db_status == "connected" else "degraded",
        "uptime": round(time.monotonic() - _STARTED, 3),
        "dbStatus": db_status,
        "redisStatus": await redis_status(),
        "version": __version__,
        "timestamp": int(time.time() * 1000),
    }

    monitor = getattr(request.app.state, "db_monitor", None)
    if monitor is not None:
        data["dbMonitor"] = {"status": monitor.status, "failures": monitor.failures}

    return ok(data)
