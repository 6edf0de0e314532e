"""Alembic environment for the notekeep schema.

Learn: The database URL always comes from NOTEKEEP_DATABASE_URL via
settings, never from alembic.ini. Online migrations go through the same
build_engine() the app uses, so async drivers (asyncpg, aiosqlite)
work unchanged; Alembic itself runs synchronously inside run_sync().

SQLite cannot ALTER most constraints in place, so batch mode is switched
on for it; PostgreSQL migrations run as plain ALTERs.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from notekeep.config import settings
from notekeep.db.engine import build_engine
from notekeep.db.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
DATABASE_URL = settings.database_url


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting (alembic upgrade --sql)."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(DATABASE_URL),
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    context.configure(connection=connection, **_configure_options(DATABASE_URL))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = build_engine(DATABASE_URL)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
