"""Season statistics output models and the recompute summary."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, computed_field

RecalcScope = Literal["round", "player_stats", "goalie_stats"]


class PlayerSeasonLine(BaseModel):
    player_id: str
    games_played: int = 0
    goals: int = 0
    assists: int = 0
    penalty_minutes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def points(self) -> int:
        return self.goals + self.assists


class GoalieSeasonLine(BaseModel):
    """Per-goalie season aggregate.

    ``gaa`` is goals against normalized to 60 minutes, rounded to two
    decimals; ``None`` when the goalie has no recorded minutes.
    """

    goalie_id: str
    games_played: int = 0
    goals_against: int = 0
    minutes_played: int = 0
    gaa: float | None = None
    eligible: bool = False


class RecalcSummary(BaseModel):
    """Outcome of one successful recompute."""

    scope: RecalcScope
    scope_id: str
    rows_written: int
