"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

create_app() builds one engine from its Settings and keeps it, with the
session factory, on app.state; get_db hands out sessions from there.

pool_pre_ping makes the pool test a connection before handing it out,
so a dropped database connection is replaced transparently on the next
request instead of failing it. Pool sizing only applies to server
databases; SQLite (used in tests) manages its own pool.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine with pool settings appropriate for the backend."""
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        # Pool of 5, bursting to 20 connections
        kwargs.update(pool_size=5, max_overflow=15)
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        yield session
