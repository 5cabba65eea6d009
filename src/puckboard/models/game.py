"""Game input models: read-only views of finalized results and in-game events."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

GameStatus = Literal["scheduled", "in_progress", "completed", "postponed", "cancelled"]
EventType = Literal["goal", "assist", "penalty"]


class GameRecord(BaseModel):
    """A game as stored by the scheduling/reporting side."""

    id: str
    round_id: str
    home_team_id: str
    away_team_id: str
    home_score: int | None = None
    away_score: int | None = None
    status: GameStatus = "scheduled"
    finalized_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class BonusPointEntry(BaseModel):
    """Signed adjustment to one team's round total."""

    round_id: str
    team_id: str
    points: int
    reason: str | None = None


class GameEventRecord(BaseModel):
    game_id: str
    player_id: str
    event_type: EventType
    team_id: str | None = None
    penalty_minutes: int | None = None


class LineupRecord(BaseModel):
    """Participation record: the player was in the game's lineup."""

    game_id: str
    player_id: str
    team_id: str


class GoalieGameRecord(BaseModel):
    game_id: str
    goalie_id: str
    goals_against: int = 0
    minutes_played: int = 0
