"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from puckboard.api.bonus_points import router as bonus_points_router
from puckboard.api.games import router as games_router
from puckboard.api.standings import router as standings_router
from puckboard.api.stats import router as stats_router
from puckboard.config import Settings
from puckboard.core.errors import (
    ConcurrentRecalcConflict,
    ConfigurationMissing,
    InvalidGameState,
    PersistenceFailure,
    RecalcError,
)
from puckboard.core.locks import ScopeLockRegistry
from puckboard.db.engine import create_engine, create_tables

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[RecalcError], int] = {
    ConfigurationMissing: 404,
    InvalidGameState: 422,
    ConcurrentRecalcConflict: 409,
    PersistenceFailure: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine and tables. Shutdown: dispose the engine."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine
    logger.info("puckboard_started env=%s", settings.puckboard_env)

    yield

    await engine.dispose()


async def _recalc_error_handler(request: Request, exc: RecalcError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(status_code=status, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the Puckboard FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.puckboard_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Puckboard",
        version="0.1.0",
        description="Standings and season statistics recalculation for a hockey league",
        docs_url="/docs" if settings.puckboard_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.recalc_locks = ScopeLockRegistry(timeout=settings.puckboard_recalc_lock_timeout)

    app.add_exception_handler(RecalcError, _recalc_error_handler)

    app.include_router(games_router)
    app.include_router(standings_router)
    app.include_router(stats_router)
    app.include_router(bonus_points_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.puckboard_env}

    return app


app = create_app()
