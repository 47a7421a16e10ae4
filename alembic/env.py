"""
Migration runner for the RigSnap ``users`` and ``requests`` tables.

The database URL always comes from ``rigsnap.core.config.settings`` so that
migrations and the API target the same database. ``alembic upgrade head
--sql`` renders the DDL for the configured dialect without connecting.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from rigsnap.core.config import settings
from rigsnap.models import Base

config = context.config

if config.config_file_name is not None:
    # Keep the application's loggers alive when migrations run in-process
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        **options,
    )


def _render_sql() -> None:
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_database() -> None:
    # One connection for the whole run, so no pool
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _render_sql()
else:
    asyncio.run(_migrate_database())
