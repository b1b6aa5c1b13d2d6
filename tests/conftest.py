"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database (StaticPool: one shared connection)
    - get_db dependency overridden to use the test engine
    - get_verifier overridden to a verifier bound to TEST_TOKEN
    - db_manager patched so readiness probes see the test engine

Design Decisions:
    - Env defaults set before any miniapp import: Settings is cached per process
"""

import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "TEST_TOKEN")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from miniapp.api.routes.telegram import get_verifier  # noqa: E402
from miniapp.core.init_data import InitDataVerifier  # noqa: E402
from miniapp.db.base import Base  # noqa: E402
from miniapp.infrastructure.database import get_db, DatabaseSessionManager  # noqa: E402
import miniapp.infrastructure.database as db_module  # noqa: E402
from miniapp.main import app  # noqa: E402

TEST_TOKEN = "TEST_TOKEN"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB and verifier dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_verifier] = lambda: InitDataVerifier(TEST_TOKEN)

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
