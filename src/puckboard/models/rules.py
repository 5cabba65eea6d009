"""ScoringRules: the resolved per-round configuration.

Consumed by the standings aggregator (point values) and the season stats
aggregators (inclusion flags and the goalie eligibility threshold).
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from puckboard.config import DEFAULT_GOALIE_MIN_GAMES


class ScoringRules(BaseModel):
    """Resolved scoring configuration for one round."""

    round_id: str
    season_id: str
    points_win: int
    points_draw: int
    points_loss: int
    counts_for_player_stats: bool = True
    counts_for_goalie_stats: bool = True
    goalie_min_games: int = Field(default=DEFAULT_GOALIE_MIN_GAMES, ge=0)
    sort_order: int = 0

    def points_for(self, wins: int, draws: int, losses: int) -> int:
        """Game-derived points for a W-D-L record, before bonus adjustments."""
        return wins * self.points_win + draws * self.points_draw + losses * self.points_loss


class RoundInclusion(BaseModel):
    """Which season totals a round feeds. Needs no point values."""

    round_id: str
    counts_for_player_stats: bool = True
    counts_for_goalie_stats: bool = True
    goalie_min_games: int = Field(default=DEFAULT_GOALIE_MIN_GAMES, ge=0)
