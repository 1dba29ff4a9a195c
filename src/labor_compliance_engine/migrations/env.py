"""Alembic migration environment for labor-compliance-engine.

The engine shares its database with the workflow application. Its history is
kept in its own version table, and autogenerate only compares the tables the
engine maps: compliance_checks, plus leave_balances, workflow_submissions and
compliance_knowledge so a development database can be built from this history.

The URL comes from alembic's sqlalchemy.url when set, otherwise from
LABOR_COMPLIANCE_DATABASE_URL through Settings.
"""

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

import labor_compliance_engine.core.models  # noqa: F401
from labor_compliance_engine.database import MIGRATION_VERSION_TABLE, Base, include_in_migrations
from labor_compliance_engine.settings import Settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or Settings().database_url


def _context_options() -> dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "version_table": MIGRATION_VERSION_TABLE,
        "include_object": include_in_migrations,
        "compare_type": True,
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL for review instead of applying it."""
    context.configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def _apply(connection: Connection) -> None:
    context.configure(connection=connection, **_context_options())
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations over an asyncpg connection."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
