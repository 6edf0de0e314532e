"""Notekeep CLI — run the server and manage the database.

Usage:
    notekeep serve --port 5050 --reload      # Run the API with uvicorn
    notekeep init-db                          # Create tables (development)
    notekeep health                           # Query a running server's /health
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click
import httpx

DEFAULT_API_URL = "http://localhost:5050"


def _api_url() -> str:
    return os.environ.get("NOTEKEEP_API_URL", DEFAULT_API_URL).rstrip("/")


@click.group()
@click.version_option(version="0.1.0", prog_name="notekeep")
def main():
    """Notekeep — personal notes API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: NOTEKEEP_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: NOTEKEEP_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    from notekeep.config import settings

    uvicorn.run(
        "notekeep.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,  # structlog owns logging
    )


async def _init_db() -> None:
    from notekeep.config import settings
    from notekeep.db.engine import build_engine
    from notekeep.db.models import Base

    engine = build_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@main.command("init-db")
def init_db():
    """Create all tables from the ORM models (use alembic in production)."""
    asyncio.run(_init_db())
    click.secho("Tables created.", fg="green")


@main.command()
@click.option("--url", default=None, help="Server base URL (default: NOTEKEEP_API_URL)")
def health(url: str | None):
    """Print the health report of a running server."""
    base = (url or _api_url()).rstrip("/")
    try:
        resp = httpx.get(f"{base}/health", timeout=5)
    except httpx.HTTPError as e:
        click.secho(f"Error: server not reachable at {base} ({e})", fg="red", err=True)
        sys.exit(1)

    data = resp.json().get("data") or {}
    click.echo(json.dumps(data, indent=2))
    if data.get("status") != "healthy":
        sys.exit(1)


if __name__ == "__main__":
    main()
