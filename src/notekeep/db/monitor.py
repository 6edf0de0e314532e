"""Database liveness monitor — supervised reconnect loop.

Learn: Instead of trying to reconnect from inside error handlers, one
background task owns the question "is the database reachable?". It
pings on a fixed interval while healthy; after a failure it disposes
the pool (dropping dead connections) and retries with exponential
backoff capped at db_reconnect_max_backoff. /health reads `status`.

Request handlers never wait on this loop: a request that hits a dead
connection fails with a server error, and pool_pre_ping gives the next
request a fresh connection once the database is back.

Usage:
    monitor = DatabaseMonitor(engine, settings)
    task = asyncio.create_task(monitor.run_loop())
    ...
    monitor.stop(); task.cancel()
"""

import asyncio

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from notekeep.config import Settings

logger = structlog.get_logger()

CONNECTED = "connected"
DISCONNECTED = "disconnected"
UNKNOWN = "unknown"


async def ping(engine: AsyncEngine) -> bool:
    """Run SELECT 1. Returns False instead of raising on any failure."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("db.ping_failed", error=str(e))
        return False


class DatabaseMonitor:
    """Periodically checks the database and tracks connection status."""

    def __init__(self, engine: AsyncEngine, settings: Settings):
        self.engine = engine
        self.interval = settings.db_monitor_interval
        self.max_backoff = settings.db_reconnect_max_backoff
        self.status = UNKNOWN
        self.failures = 0
        self._running = False

    def next_delay(self) -> float:
        """Seconds to wait before the next check, given consecutive failures."""
        if self.failures == 0:
            return self.interval
        return min(0.5 * (2 ** (self.failures - 1)), self.max_backoff)

    async def check_once(self) -> str:
        ok = await ping(self.engine)
        if ok:
            if self.status != CONNECTED:
                logger.info("db.connected", after_failures=self.failures)
            self.status = CONNECTED
            self.failures = 0
        else:
            self.failures += 1
            if self.status != DISCONNECTED:
                logger.error("db.disconnected")
            self.status = DISCONNECTED
            # Drop pooled connections so the retry opens new ones
            await self.engine.dispose()
        return self.status

    async def run_loop(self) -> None:
        """Main monitor loop — runs until stop() is called or the task is cancelled."""
        self._running = True
        logger.info("db_monitor.started", interval=self.interval)

        while self._running:
            try:
                await self.check_once()
            except Exception:
                logger.exception("db_monitor.error")
            delay = self.next_delay()
            if self.failures:
                logger.info("db.reconnect_scheduled", delay=delay, attempt=self.failures)
            await asyncio.sleep(delay)

    def stop(self) -> None:
        """Signal the monitor to stop."""
        self._running = False
        logger.info("db_monitor.stopping")
