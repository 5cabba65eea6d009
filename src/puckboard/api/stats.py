"""Season statistics API endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from puckboard.api.deps import EngineDep, LocksDep, RepoDep
from puckboard.core.recalc import recalc_goalie_stats, recalc_player_stats

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/players")
async def get_player_stats(season_id: str, repo: RepoDep) -> dict:
    """Scorer table for a season: points desc, goals desc."""
    rows = await repo.get_player_season_stats(season_id)
    return {
        "data": [
            {
                "player_id": r.player_id,
                "games_played": r.games_played,
                "goals": r.goals,
                "assists": r.assists,
                "points": r.points,
                "penalty_minutes": r.penalty_minutes,
            }
            for r in rows
        ]
    }


@router.get("/goalies")
async def get_goalie_stats(season_id: str, repo: RepoDep, eligible_only: bool = False) -> dict:
    """Goalie table for a season: GAA ascending, goalies without minutes last."""
    rows = await repo.get_goalie_season_stats(season_id, eligible_only=eligible_only)
    return {
        "data": [
            {
                "goalie_id": r.goalie_id,
                "games_played": r.games_played,
                "goals_against": r.goals_against,
                "minutes_played": r.minutes_played,
                "gaa": r.gaa,
                "eligible": r.eligible,
            }
            for r in rows
        ]
    }


@router.post("/{season_id}/recalculate")
async def recalculate(season_id: str, engine: EngineDep, locks: LocksDep) -> dict:
    """Recompute player and goalie stats for a season."""
    players = await recalc_player_stats(engine, locks, season_id)
    goalies = await recalc_goalie_stats(engine, locks, season_id)
    return {"data": [players.model_dump(), goalies.model_dump()]}
