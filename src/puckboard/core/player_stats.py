"""Player season statistics from the event ledger.

Only completed games in rounds flagged ``counts_for_player_stats`` feed a
season's totals. A player has played a game if they appear in its lineup
or have at least one event in it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from puckboard.core.errors import InvalidGameState
from puckboard.core.rules import ScoringRuleResolver
from puckboard.db.repository import Repository
from puckboard.models.game import GameEventRecord, LineupRecord
from puckboard.models.stats import PlayerSeasonLine

logger = logging.getLogger(__name__)

SCOPE = "player_stats"


def aggregate_player_stats(
    season_id: str,
    events: Iterable[GameEventRecord],
    lineups: Iterable[LineupRecord] = (),
) -> list[PlayerSeasonLine]:
    """Fold events and lineup records into one line per player.

    Callers pass only records from counting games. Lines come back ordered
    by player id.
    """
    lines: dict[str, PlayerSeasonLine] = {}
    games_by_player: dict[str, set[str]] = {}

    def line_for(player_id: str) -> PlayerSeasonLine:
        if player_id not in lines:
            lines[player_id] = PlayerSeasonLine(player_id=player_id)
            games_by_player[player_id] = set()
        return lines[player_id]

    for ev in events:
        line = line_for(ev.player_id)
        games_by_player[ev.player_id].add(ev.game_id)
        if ev.event_type == "goal":
            line.goals += 1
        elif ev.event_type == "assist":
            line.assists += 1
        elif ev.event_type == "penalty":
            minutes = ev.penalty_minutes or 0
            if minutes < 0:
                raise InvalidGameState(
                    f"penalty for player {ev.player_id} in game {ev.game_id} "
                    f"has negative minutes ({minutes})",
                    scope=SCOPE,
                    scope_id=season_id,
                    game_id=ev.game_id,
                )
            line.penalty_minutes += minutes

    for lineup in lineups:
        line_for(lineup.player_id)
        games_by_player[lineup.player_id].add(lineup.game_id)

    for player_id, line in lines.items():
        line.games_played = len(games_by_player[player_id])

    return [lines[pid] for pid in sorted(lines)]


class PlayerStatsAggregator:
    """Recomputes a season's player stats from stored events and lineups."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo
        self.rules = ScoringRuleResolver(repo)

    async def compute(self, season_id: str) -> list[PlayerSeasonLine]:
        rounds = await self.rules.resolve_season(season_id, scope=SCOPE)
        round_ids = [r.round_id for r in rounds if r.counts_for_player_stats]
        games = await self.repo.get_completed_games(round_ids)
        game_ids = [g.id for g in games]

        events = [
            GameEventRecord(
                game_id=e.game_id,
                player_id=e.player_id,
                event_type=e.event_type,
                team_id=e.team_id,
                penalty_minutes=e.penalty_minutes,
            )
            for e in await self.repo.get_events_for_games(game_ids)
        ]
        lineups = [
            LineupRecord(game_id=lu.game_id, player_id=lu.player_id, team_id=lu.team_id)
            for lu in await self.repo.get_lineups_for_games(game_ids)
        ]
        return aggregate_player_stats(season_id, events, lineups)

    async def recalc(self, season_id: str) -> int:
        """Replace the season's player stat rows. Caller holds the lock and commits."""
        lines = await self.compute(season_id)
        written = await self.repo.replace_player_season_stats(season_id, lines)
        logger.info("player_stats_recalculated season=%s players=%d", season_id, written)
        return written
