"""DatabaseMonitor tests — status transitions and reconnect backoff."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from notekeep.config import Settings
from notekeep.db.monitor import CONNECTED, DISCONNECTED, UNKNOWN, DatabaseMonitor


def _settings() -> Settings:
    return Settings(
        environment="test", db_monitor_interval=15.0, db_reconnect_max_backoff=8.0
    )


def test_backoff_doubles_and_caps():
    monitor = DatabaseMonitor(engine=None, settings=_settings())
    assert monitor.status == UNKNOWN
    assert monitor.next_delay() == 15.0

    delays = []
    for failures in range(1, 7):
        monitor.failures = failures
        delays.append(monitor.next_delay())
    assert delays == [0.5, 1.0, 2.0, 4.0, 8.0, 8.0]


@pytest.mark.asyncio
async def test_check_once_connected(db_engine):
    monitor = DatabaseMonitor(db_engine, _settings())
    assert await monitor.check_once() == CONNECTED
    assert monitor.failures == 0


@pytest.mark.asyncio
async def test_check_once_disconnected_then_recovers(db_engine, tmp_path):
    dead = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/db.sqlite")
    monitor = DatabaseMonitor(dead, _settings())

    assert await monitor.check_once() == DISCONNECTED
    assert await monitor.check_once() == DISCONNECTED
    assert monitor.failures == 2
    await dead.dispose()

    # Database "comes back"
    monitor.engine = db_engine
    assert await monitor.check_once() == CONNECTED
    assert monitor.failures == 0
    assert monitor.next_delay() == 15.0
