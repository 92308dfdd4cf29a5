"""Database engine, session factory and transaction helpers"""

import functools
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
import structlog

from cantina.config import settings
from cantina.errors import CantinaError, StoreUnavailableError

logger = structlog.get_logger()

# Errors raised when the store itself is unreachable
STORE_ERRORS = (OperationalError, InterfaceError, OSError)

engine = create_async_engine(
    settings.database_url,
    echo=settings.api_debug,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request"""
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession, operation: str, **context) -> AsyncIterator[AsyncSession]:
    """
    Run one logical write operation as a single unit.

    Everything written inside the block is committed together on exit.
    Any exception rolls the whole operation back before it propagates, so
    readers never observe a half-applied order, debt or customer total.
    """
    try:
        yield db
        await db.commit()
    except CantinaError:
        await db.rollback()
        raise
    except STORE_ERRORS as e:
        await db.rollback()
        logger.error("Store unavailable, operation rolled back", operation=operation, error=str(e), **context)
        raise StoreUnavailableError("Database not available") from e
    except Exception as e:
        await db.rollback()
        logger.error("Operation failed, rolled back", operation=operation, error=str(e), **context)
        raise


def degrade_on_store_error(default_factory: Callable[[], Any]):
    """
    Decorator for read-only queries: when the store is unreachable, log a
    warning and return an empty result instead of failing the request.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except STORE_ERRORS as e:
                logger.warning("Store unavailable, returning empty result", operation=func.__name__, error=str(e))
                return default_factory()
        return wrapper
    return decorator
