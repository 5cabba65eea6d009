"""Scoring rule resolution: per-round point values and stat inclusion flags."""

from __future__ import annotations

from puckboard.core.errors import ConfigurationMissing
from puckboard.db.models import RoundRow
from puckboard.db.repository import Repository
from puckboard.models.rules import RoundInclusion, ScoringRules


def rules_from_round(round_row: RoundRow) -> ScoringRules:
    """Build ScoringRules from a stored round.

    Raises ConfigurationMissing if any point value is unset.
    """
    missing = [
        name
        for name in ("points_win", "points_draw", "points_loss")
        if getattr(round_row, name) is None
    ]
    if missing:
        raise ConfigurationMissing(
            f"round {round_row.id} has no scoring configuration ({', '.join(missing)} unset)",
            scope="round",
            scope_id=round_row.id,
        )
    return ScoringRules(
        round_id=round_row.id,
        season_id=round_row.season_id,
        points_win=round_row.points_win,
        points_draw=round_row.points_draw,
        points_loss=round_row.points_loss,
        counts_for_player_stats=bool(round_row.counts_for_player_stats),
        counts_for_goalie_stats=bool(round_row.counts_for_goalie_stats),
        goalie_min_games=round_row.goalie_min_games,
        sort_order=round_row.sort_order,
    )


class ScoringRuleResolver:
    """Read-only lookup of scoring rules. No side effects."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    async def resolve(self, round_id: str) -> ScoringRules:
        round_row = await self.repo.get_round(round_id)
        if round_row is None:
            raise ConfigurationMissing(
                f"round {round_id} does not exist", scope="round", scope_id=round_id
            )
        return rules_from_round(round_row)

    async def resolve_season(self, season_id: str, *, scope: str = "season") -> list[RoundInclusion]:
        """Stat inclusion flags for every round of a season, in play order.

        ``scope`` tags any ConfigurationMissing with the caller's scope kind.
        """
        season = await self.repo.get_season(season_id)
        if season is None:
            raise ConfigurationMissing(
                f"season {season_id} does not exist", scope=scope, scope_id=season_id
            )
        rounds = await self.repo.get_rounds_for_season(season_id)
        return [
            RoundInclusion(
                round_id=r.id,
                counts_for_player_stats=bool(r.counts_for_player_stats),
                counts_for_goalie_stats=bool(r.counts_for_goalie_stats),
                goalie_min_games=r.goalie_min_games,
            )
            for r in rounds
        ]
