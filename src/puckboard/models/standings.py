"""Standings output models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, computed_field


class StandingEntry(BaseModel):
    """One team's aggregated line in a round, before and after ranking.

    ``goal_difference`` and ``total_points`` are derived on every access and
    never stored independently of their inputs.
    """

    team_id: str
    games_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    bonus_points: int = 0
    rank: int = 0
    previous_rank: int | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> int:
        return self.points + self.bonus_points


class FormResult(BaseModel):
    result: Literal["W", "D", "L"]
    opponent_id: str
    goals_for: int
    goals_against: int


class TeamForm(BaseModel):
    """Latest results for one team, most recent first."""

    team_id: str
    form: list[FormResult]
