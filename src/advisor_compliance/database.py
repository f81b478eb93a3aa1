"""Primary database engine, declarative base and session dependency.

Key exports:
- Base                 declarative base for all ORM models
- TenantScopedModel    mixin adding id, tenant_id, created_at, updated_at
- init_database(...)   call at startup to create the engine
- close_database()     call at shutdown to dispose the engine
- get_db_session()     FastAPI dependency yielding an AsyncSession
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from advisor_compliance.observability import get_logger

logger = get_logger(__name__)

# Module-level engine and session factory, set by init_database()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Declarative base for the compliance store."""


class TenantScopedModel(Base):
    """Abstract base adding identity, tenant ownership and timestamps."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Owning tenant UUID",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


def init_database(
    database_url: str,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_timeout: int = 30,
) -> None:
    """Initialize the primary database engine and session factory.

    Args:
        database_url: Async SQLAlchemy connection URL.
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
    """Dispose the primary database engine."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        logger.info("Disposing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a primary database session.

    Commits when the request handler returns and rolls back on any error.

    Yields:
        AsyncSession: A session bound to the primary database.

    Raises:
        RuntimeError: If init_database() has not been called yet.
    """
    if _session_factory is None:
        raise RuntimeError(
            "Database has not been initialized. "
            "Call init_database() in the application lifespan handler."
        )

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
