import os

# Settings are read once at import time, so configure before importing the app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_ENDPOINT"] = ""
os.environ["SENTRY_DSN"] = ""
os.environ["OTLP_ENDPOINT"] = ""

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from snaplink_shared import LogClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.core.database import async_session_factory, engine, init_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory database for every test."""
    await init_db()
    yield
    # Closing the only pooled connection drops the in-memory database
    await engine.dispose()


@pytest.fixture
async def session(database: None) -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def log_client() -> LogClient:
    client: LogClient = app.state.log_client
    client.clear()
    return client


@pytest.fixture
async def client(database: None, log_client: LogClient) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
