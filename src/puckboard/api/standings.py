"""Standings API endpoints: read a round's table, team form, trigger recomputes."""

from __future__ import annotations

from fastapi import APIRouter, Query

from puckboard.api.deps import EngineDep, LocksDep, RepoDep
from puckboard.core.recalc import recalc_all_rounds, recalc_standings
from puckboard.core.standings import compute_team_form, game_record

router = APIRouter(prefix="/api/standings", tags=["standings"])


@router.get("")
async def get_standings(round_id: str, repo: RepoDep) -> dict:
    """Persisted standings for a round, best rank first.

    Team names are resolved in one bulk query.
    """
    rows = await repo.get_standings(round_id)
    names = await repo.get_team_names(r.team_id for r in rows)
    data = [
        {
            "team_id": r.team_id,
            "team_name": names.get(r.team_id, r.team_id),
            "rank": r.rank,
            "previous_rank": r.previous_rank,
            "games_played": r.games_played,
            "wins": r.wins,
            "draws": r.draws,
            "losses": r.losses,
            "goals_for": r.goals_for,
            "goals_against": r.goals_against,
            "goal_difference": r.goal_difference,
            "points": r.points,
            "bonus_points": r.bonus_points,
            "total_points": r.total_points,
        }
        for r in rows
    ]
    return {"data": data}


@router.get("/form")
async def get_team_form(
    round_id: str,
    repo: RepoDep,
    limit: int = Query(default=5, ge=1, le=20),
) -> dict:
    """Last ``limit`` results per team in the round."""
    games = [game_record(g) for g in await repo.get_completed_games([round_id])]
    forms = compute_team_form(games, limit=limit)
    return {"data": [f.model_dump() for f in forms]}


@router.post("/recalculate-all")
async def recalculate_all(season_id: str, engine: EngineDep, locks: LocksDep) -> dict:
    """Recompute every round of a season in play order."""
    summaries = await recalc_all_rounds(engine, locks, season_id)
    return {"rounds_recalculated": len(summaries), "data": [s.model_dump() for s in summaries]}


@router.post("/{round_id}/recalculate")
async def recalculate(round_id: str, engine: EngineDep, locks: LocksDep) -> dict:
    summary = await recalc_standings(engine, locks, round_id)
    return {"data": summary.model_dump()}
