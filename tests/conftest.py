# tests/conftest.py
import os

# Must run before the app modules read their settings
os.environ.setdefault("SQL_DSN", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SCHEDULE_TZ", "UTC")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.clock import reference_zone
from app.core.config import settings
from app.db.base import Base
from app.db.sql import get_session
from app.main import app
from app.modules import registry  # noqa: F401


@pytest.fixture
def reference_tz():
    """Switch the reference zone for one test."""
    original = settings.SCHEDULE_TZ

    def _set(name: str):
        settings.SCHEDULE_TZ = name
        reference_zone.cache_clear()

    yield _set
    settings.SCHEDULE_TZ = original
    reference_zone.cache_clear()


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # pysqlite/aiosqlite need an explicit BEGIN for SAVEPOINT to work
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
