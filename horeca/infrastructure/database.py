"""Database configuration and session management.

Provides the async SQLAlchemy engine, session factory and declarative base
for the persisted layout. The engine connects lazily, so importing this
module never opens a connection.
"""

import asyncio
from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from horeca.domain.exceptions import TransientStoreError
from horeca.infrastructure.config import settings

logger = structlog.get_logger()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session that commits on success and rolls back on error.

    Connection failures and timeouts are reported as TransientStoreError so
    callers see a retriable error instead of a driver-specific one.

    Yields:
        AsyncSession for database operations.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except (OperationalError, DBAPIError, asyncio.TimeoutError) as e:
            await session.rollback()
            logger.warning("Store operation failed", error=str(e))
            raise TransientStoreError(operation="session") from e
        except Exception:
            await session.rollback()
            raise
