"""Request-scoped dependencies: engine, session, repository and recompute locks."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from puckboard.core.locks import ScopeLockRegistry
from puckboard.db.engine import get_session
from puckboard.db.repository import Repository


async def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine


async def get_locks(request: Request) -> ScopeLockRegistry:
    return request.app.state.recalc_locks


EngineDep = Annotated[AsyncEngine, Depends(get_engine)]
LocksDep = Annotated[ScopeLockRegistry, Depends(get_locks)]


async def get_request_session(engine: EngineDep) -> AsyncGenerator[AsyncSession, None]:
    """One session per request, committed when the handler returns."""
    async with get_session(engine) as session:
        yield session


async def get_repo(session: Annotated[AsyncSession, Depends(get_request_session)]) -> Repository:
    return Repository(session)


RepoDep = Annotated[Repository, Depends(get_repo)]
