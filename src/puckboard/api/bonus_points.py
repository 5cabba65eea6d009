"""Bonus point endpoints. Every mutation recomputes the affected round."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from puckboard.api.deps import EngineDep, LocksDep, RepoDep
from puckboard.core.recalc import recalc_standings
from puckboard.db.engine import get_session
from puckboard.db.models import BonusPointRow
from puckboard.db.repository import Repository

router = APIRouter(prefix="/api/bonus-points", tags=["bonus-points"])


class BonusPointCreate(BaseModel):
    round_id: str
    team_id: str
    points: int
    reason: str | None = None


class BonusPointUpdate(BaseModel):
    """Partial update. Omitted fields are left alone; an explicit null reason clears it."""

    points: int | None = None
    reason: str | None = None


def _bonus_dict(row: BonusPointRow) -> dict:
    return {
        "id": row.id,
        "round_id": row.round_id,
        "team_id": row.team_id,
        "points": row.points,
        "reason": row.reason,
    }


@router.get("")
async def list_bonus_points(round_id: str, repo: RepoDep) -> dict:
    rows = await repo.get_bonus_points_for_round(round_id)
    return {"data": [_bonus_dict(r) for r in rows]}


# Mutations commit in their own session before recomputing, so the
# recompute reads the new bonus state.


@router.post("", status_code=201)
async def create_bonus_point(body: BonusPointCreate, engine: EngineDep, locks: LocksDep) -> dict:
    async with get_session(engine) as session:
        repo = Repository(session)
        if await repo.get_round(body.round_id) is None:
            raise HTTPException(status_code=404, detail="Round not found")
        if await repo.get_team(body.team_id) is None:
            raise HTTPException(status_code=404, detail="Team not found")
        row = await repo.add_bonus_point(body.round_id, body.team_id, body.points, body.reason)
        data = _bonus_dict(row)
    summary = await recalc_standings(engine, locks, body.round_id)
    return {"data": data, "recalc": summary.model_dump()}


@router.patch("/{bonus_id}")
async def update_bonus_point(
    bonus_id: str, body: BonusPointUpdate, engine: EngineDep, locks: LocksDep
) -> dict:
    async with get_session(engine) as session:
        changes = body.model_dump(exclude_unset=True)
        if "points" in changes and changes["points"] is None:
            raise HTTPException(status_code=422, detail="points cannot be null")
        row = await Repository(session).update_bonus_point(bonus_id, **changes)
        if row is None:
            raise HTTPException(status_code=404, detail="Bonus point not found")
        data = _bonus_dict(row)
    summary = await recalc_standings(engine, locks, data["round_id"])
    return {"data": data, "recalc": summary.model_dump()}


@router.delete("/{bonus_id}")
async def delete_bonus_point(bonus_id: str, engine: EngineDep, locks: LocksDep) -> dict:
    async with get_session(engine) as session:
        row = await Repository(session).delete_bonus_point(bonus_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Bonus point not found")
        round_id = row.round_id
    summary = await recalc_standings(engine, locks, round_id)
    return {"deleted": bonus_id, "recalc": summary.model_dump()}
