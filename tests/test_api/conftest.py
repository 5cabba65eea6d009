"""API test fixtures: the app wired to the shared in-memory engine."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from puckboard.config import Settings
from puckboard.main import create_app


@pytest.fixture
async def app(engine: AsyncEngine):
    """Create test app bound to the in-memory database."""
    settings = Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        puckboard_recalc_lock_timeout=0.1,
    )
    application = create_app(settings)
    application.state.engine = engine
    return application


@pytest.fixture
async def client(app) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
