# app/db/sql.py
from __future__ import annotations

import functools
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, ParamSpec, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _engine_options(dsn: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.DB_ECHO}
    if not dsn.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return options


engine = create_async_engine(settings.SQL_DSN, **_engine_options(settings.SQL_DSN))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commit on success, rollback on any error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def upstream_guard() -> AsyncIterator[None]:
    """
    Translate "cannot reach the database" into UpstreamUnavailable.
    Constraint violations and other errors pass through untouched.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise UpstreamUnavailable("schedule_store_unavailable") from exc


async def init_db(drop: bool = False) -> None:
    """
    Create tables for every registered model (dev / tests; use Alembic elsewhere).
    """
    from app.db.base import Base
    from app.modules import registry  # noqa: F401  registers all models

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (drop=%s)", drop)


def upstream_guarded(fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """Decorator form of upstream_guard for service coroutines."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        async with upstream_guard():
            return await fn(*args, **kwargs)

    return wrapper
