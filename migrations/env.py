"""
Alembic environment.

The database URL always comes from ``DATABASE_URL`` (via settings) so
migrations and the app never disagree about which database they target.
"""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from shiptrack import models  # noqa: F401  registers every table on Base.metadata
from shiptrack.core.config import settings
from shiptrack.core.database import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", settings.database_url)

COMPARE_OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
    "compare_server_default": True,
    # SQLite needs batch mode for ALTER on the check constraints
    "render_as_batch": settings.database_url.startswith("sqlite"),
}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **COMPARE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    # Plain postgres URLs from hosting dashboards need the async driver
    url = section.get("sqlalchemy.url", "")
    if url.startswith("postgresql://"):
        section["sqlalchemy.url"] = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
