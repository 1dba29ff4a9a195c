"""Primary database engine, session dependency, and declarative base.

Key exports:
- Base                 — Declarative base for all ORM models
- include_in_migrations — Alembic hook keeping autogenerate to tables Base maps
- init_database(...)   — Call at startup to create the engine and session factory
- close_database()     — Call at shutdown to dispose the engine
- get_db_session()     — FastAPI dependency yielding one session per request
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for labor-compliance-engine ORM models."""


# Alembic history table for this service. The database is shared with the
# workflow application, which keeps its own alembic_version.
MIGRATION_VERSION_TABLE = "labor_compliance_alembic_version"


def include_in_migrations(
    obj: object,
    name: str | None,
    type_: str,
    reflected: bool,
    compare_to: object | None,
) -> bool:
    """Alembic include_object hook limiting autogenerate to mapped tables.

    Reflected tables that Base does not map belong to the workflow
    application; without this filter autogenerate would propose dropping them.
    """
    if type_ == "table":
        return name in Base.metadata.tables
    return True


# Module-level engine and session factory, set by init_database()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_database(
    database_url: str,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_timeout: int = 30,
) -> None:
    """Initialize the database engine and session factory.

    Must be called once at application startup (in the lifespan handler)
    before any request obtains a session.

    Args:
        database_url: SQLAlchemy async connection URL.
        pool_size: Connection pool size.
        max_overflow: Max overflow connections above pool_size.
        pool_timeout: Seconds to wait for a connection before raising.
    """
    global _engine, _session_factory  # noqa: PLW0603

    logger.info("Initializing database engine", pool_size=pool_size, max_overflow=max_overflow)

    _engine = create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        echo=False,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_database() -> None:
    """Dispose the database engine. Safe to call when not initialized."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        logger.info("Disposing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session.

    The session commits when the request handler returns normally and rolls
    back on any exception, including request cancellation.

    Yields:
        AsyncSession: A session bound to the primary database.

    Raises:
        RuntimeError: If init_database() has not been called yet.
    """
    if _session_factory is None:
        raise RuntimeError(
            "Database has not been initialized. Call init_database() in the application lifespan handler."
        )

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
