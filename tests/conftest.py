"""Shared test fixtures."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from puckboard.config import Settings
from puckboard.core.locks import ScopeLockRegistry
from puckboard.db.engine import create_engine, get_session
from puckboard.db.models import Base
from puckboard.db.repository import Repository


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(puckboard_env="development", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def locks() -> ScopeLockRegistry:
    """Lock registry with a short timeout so conflict tests fail fast."""
    return ScopeLockRegistry(timeout=0.2)


@pytest.fixture
async def league(engine: AsyncEngine) -> dict[str, str]:
    """One season with a 2/1/0 round and four teams.

    Alpha: 2W 1L, 10-4. Beta: 1W 1D 1L, 7-7, plus one bonus point.
    Gamma: 1D 1L, 2-7. Delta: 1W 1L, 5-6.
    """
    async with get_session(engine) as session:
        repo = Repository(session)
        season = await repo.create_season("2026")
        rnd = await repo.create_round(season.id, "Regular season", goalie_min_games=2)
        a = await repo.create_team("Alpha")
        b = await repo.create_team("Beta")
        c = await repo.create_team("Gamma")
        d = await repo.create_team("Delta")
        games = [
            await repo.create_game(rnd.id, a.id, c.id, 5, 0, status="completed"),
            await repo.create_game(rnd.id, a.id, d.id, 4, 1, status="completed"),
            await repo.create_game(rnd.id, a.id, b.id, 1, 3, status="completed"),
            await repo.create_game(rnd.id, b.id, c.id, 2, 2, status="completed"),
            await repo.create_game(rnd.id, b.id, d.id, 2, 4, status="completed"),
        ]
        await repo.add_bonus_point(rnd.id, b.id, 1, "fair play")
    ids = {
        "season": season.id,
        "round": rnd.id,
        "alpha": a.id,
        "beta": b.id,
        "gamma": c.id,
        "delta": d.id,
    }
    for i, game in enumerate(games, start=1):
        ids[f"game{i}"] = game.id
    return ids
