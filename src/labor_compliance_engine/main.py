"""Labor compliance engine service entry point.

Initializes the FastAPI application with:
- Structured logging
- Primary database for balances, submissions, knowledge, and check records
- Gemini client for the AI augmentation step
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from labor_compliance_engine import __version__
from labor_compliance_engine.adapters.gemini_client import build_model_client
from labor_compliance_engine.api.router import router
from labor_compliance_engine.database import close_database, init_database
from labor_compliance_engine.observability import configure_logging, get_logger
from labor_compliance_engine.settings import Settings

logger = get_logger(__name__)

settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    configure_logging(level=settings.log_level, json_output=settings.log_json)

    logger.info("Initializing database", service=settings.service_name)
    await init_database(
        database_url=settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
    )

    # Store shared clients on app state for dependency injection
    app.state.settings = settings
    app.state.model_client = build_model_client(settings)

    logger.info(
        "Compliance engine startup complete",
        gemini_model=settings.gemini_model,
        ai_timeout_seconds=settings.ai_timeout_seconds,
    )

    yield

    logger.info("Shutting down compliance engine")
    await close_database()
    logger.info("Compliance engine shutdown complete")


app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "service": settings.service_name}


app.include_router(router, prefix="/api/v1")
