"""Game result endpoint: the finalization / correction trigger.

Setting a game to ``completed`` finalizes it; moving a completed game to
``postponed`` or ``cancelled`` is a correction. Either way the affected
round and season are recomputed from scratch.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from puckboard.api.deps import EngineDep, LocksDep
from puckboard.core.recalc import recalc_after_game_change
from puckboard.db.engine import get_session
from puckboard.db.repository import Repository
from puckboard.models.game import GameStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/games", tags=["games"])


class GameResultUpdate(BaseModel):
    status: GameStatus
    home_score: int | None = Field(default=None, ge=0)
    away_score: int | None = Field(default=None, ge=0)


@router.post("/{game_id}/result")
async def set_game_result(
    game_id: str, body: GameResultUpdate, engine: EngineDep, locks: LocksDep
) -> dict:
    if body.status == "completed" and (body.home_score is None or body.away_score is None):
        raise HTTPException(status_code=422, detail="A completed game needs both scores")

    async with get_session(engine) as session:
        repo = Repository(session)
        game = await repo.get_game(game_id)
        if game is None:
            raise HTTPException(status_code=404, detail="Game not found")
        previous_status = game.status
        await repo.update_game_result(game_id, body.status, body.home_score, body.away_score)

    logger.info("game_result_set game=%s %s->%s", game_id, previous_status, body.status)
    summaries = await recalc_after_game_change(engine, locks, game_id)
    return {
        "game_id": game_id,
        "status": body.status,
        "recalc": [s.model_dump() for s in summaries],
    }
