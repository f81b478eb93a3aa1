"""Advisor compliance engine service entry point.

Initializes the FastAPI application with:
- structlog logging
- Primary database for rules, checks, cases and documents
- Engine error to HTTP status mapping
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from advisor_compliance.api.router import router
from advisor_compliance.database import close_database, init_database
from advisor_compliance.errors import register_exception_handlers
from advisor_compliance.observability import configure_logging, get_logger
from advisor_compliance.settings import Settings

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
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    logger.info("Initializing primary database", service=settings.service_name)
    init_database(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
    )

    if not settings.insight_service_url:
        logger.warning("No insight service configured, insights will use heuristics only")

    logger.info("Compliance engine startup complete", service=settings.service_name)

    yield

    logger.info("Shutting down compliance engine")
    await close_database()
    logger.info("Compliance engine shutdown complete")


app = FastAPI(title="advisor-compliance-engine", version="0.1.0", lifespan=lifespan)
app.state.settings = settings
register_exception_handlers(app)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok", "service": settings.service_name}


app.include_router(router, prefix="/api/v1")
