"""Goalie season statistics: goals against, minutes, GAA and eligibility."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from puckboard.core.errors import InvalidGameState
from puckboard.core.rules import ScoringRuleResolver
from puckboard.db.repository import Repository
from puckboard.models.game import GoalieGameRecord
from puckboard.models.rules import RoundInclusion
from puckboard.models.stats import GoalieSeasonLine

logger = logging.getLogger(__name__)

SCOPE = "goalie_stats"

MINUTES_PER_GAME = 60


def goals_against_average(goals_against: int, minutes_played: int) -> float | None:
    """GAA on a 60-minute basis, two decimals. None without minutes."""
    if minutes_played <= 0:
        return None
    return round(goals_against * MINUTES_PER_GAME / minutes_played, 2)


def eligibility_threshold(rounds: Iterable[RoundInclusion]) -> int:
    """Games a goalie needs across the season's counting rounds.

    Rounds can carry different thresholds; the strictest one applies.
    """
    thresholds = [r.goalie_min_games for r in rounds if r.counts_for_goalie_stats]
    return max(thresholds, default=0)


def aggregate_goalie_stats(
    season_id: str,
    game_stats: Iterable[GoalieGameRecord],
    min_games: int,
) -> list[GoalieSeasonLine]:
    """Fold per-game goalie lines into season lines ordered by goalie id."""
    lines: dict[str, GoalieSeasonLine] = {}
    games_by_goalie: dict[str, set[str]] = {}

    for stat in game_stats:
        if stat.goals_against < 0 or stat.minutes_played < 0:
            raise InvalidGameState(
                f"goalie {stat.goalie_id} in game {stat.game_id} has negative stats "
                f"(goals_against={stat.goals_against}, minutes={stat.minutes_played})",
                scope=SCOPE,
                scope_id=season_id,
                game_id=stat.game_id,
            )
        line = lines.get(stat.goalie_id)
        if line is None:
            line = lines[stat.goalie_id] = GoalieSeasonLine(goalie_id=stat.goalie_id)
            games_by_goalie[stat.goalie_id] = set()
        line.goals_against += stat.goals_against
        line.minutes_played += stat.minutes_played
        games_by_goalie[stat.goalie_id].add(stat.game_id)

    for goalie_id, line in lines.items():
        line.games_played = len(games_by_goalie[goalie_id])
        line.gaa = goals_against_average(line.goals_against, line.minutes_played)
        line.eligible = line.games_played >= min_games

    return [lines[gid] for gid in sorted(lines)]


class GoalieStatsAggregator:
    """Recomputes a season's goalie stats from stored goalie game lines."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo
        self.rules = ScoringRuleResolver(repo)

    async def compute(self, season_id: str) -> list[GoalieSeasonLine]:
        rounds = await self.rules.resolve_season(season_id, scope=SCOPE)
        counting = [r for r in rounds if r.counts_for_goalie_stats]
        games = await self.repo.get_completed_games([r.round_id for r in counting])
        stats = [
            GoalieGameRecord(
                game_id=s.game_id,
                goalie_id=s.goalie_id,
                goals_against=s.goals_against,
                minutes_played=s.minutes_played,
            )
            for s in await self.repo.get_goalie_stats_for_games([g.id for g in games])
        ]
        return aggregate_goalie_stats(season_id, stats, eligibility_threshold(counting))

    async def recalc(self, season_id: str) -> int:
        """Replace the season's goalie stat rows. Caller holds the lock and commits."""
        lines = await self.compute(season_id)
        written = await self.repo.replace_goalie_season_stats(season_id, lines)
        logger.info("goalie_stats_recalculated season=%s goalies=%d", season_id, written)
        return written
