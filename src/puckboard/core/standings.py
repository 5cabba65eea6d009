"""Round standings: aggregate completed games and bonus points into ranked rows.

The aggregation is a pure function of its inputs (``aggregate_standings``);
``StandingsAggregator`` wires it to the repository and swaps the round's
persisted row set. Nothing is carried over from a previous recompute except
each team's last rank movement, which becomes ``previous_rank``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping

from puckboard.core.errors import InvalidGameState
from puckboard.core.ranking import rank_standings
from puckboard.core.rules import ScoringRuleResolver
from puckboard.db.models import GameRow
from puckboard.db.repository import Repository
from puckboard.models.game import BonusPointEntry, GameRecord
from puckboard.models.rules import ScoringRules
from puckboard.models.standings import FormResult, StandingEntry, TeamForm

logger = logging.getLogger(__name__)


def game_record(row: GameRow) -> GameRecord:
    return GameRecord(
        id=row.id,
        round_id=row.round_id,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        home_score=row.home_score,
        away_score=row.away_score,
        status=row.status,
        finalized_at=row.finalized_at,
    )


def check_final_score(game: GameRecord, *, scope: str = "round", scope_id: str = "") -> None:
    """Raise InvalidGameState unless a completed game has two non-negative scores."""
    scope_id = scope_id or game.round_id
    if game.home_score is None or game.away_score is None:
        raise InvalidGameState(
            f"game {game.id} is completed but has no final score",
            scope=scope,
            scope_id=scope_id,
            game_id=game.id,
        )
    if game.home_score < 0 or game.away_score < 0:
        raise InvalidGameState(
            f"game {game.id} has a negative score ({game.home_score}-{game.away_score})",
            scope=scope,
            scope_id=scope_id,
            game_id=game.id,
        )


def aggregate_standings(
    rules: ScoringRules,
    games: Iterable[GameRecord],
    bonus_points: Iterable[BonusPointEntry] = (),
    prior_ranks: Mapping[str, tuple[int, int | None]] | None = None,
) -> list[StandingEntry]:
    """Build the ranked standings for one round.

    Only completed games count; every completed game is validated before
    anything is accumulated, so one bad game fails the whole round. Teams
    with bonus entries but no completed game still get a row.
    """
    completed = [g for g in games if g.is_completed]
    for game in completed:
        check_final_score(game, scope_id=rules.round_id)

    entries: dict[str, StandingEntry] = {}

    def entry_for(team_id: str) -> StandingEntry:
        if team_id not in entries:
            entries[team_id] = StandingEntry(team_id=team_id)
        return entries[team_id]

    for game in completed:
        home = entry_for(game.home_team_id)
        away = entry_for(game.away_team_id)
        hs, as_ = game.home_score, game.away_score

        home.games_played += 1
        away.games_played += 1
        home.goals_for += hs
        home.goals_against += as_
        away.goals_for += as_
        away.goals_against += hs

        if hs > as_:
            home.wins += 1
            away.losses += 1
        elif hs < as_:
            away.wins += 1
            home.losses += 1
        else:
            home.draws += 1
            away.draws += 1

    bonus_by_team: dict[str, int] = defaultdict(int)
    for bp in bonus_points:
        bonus_by_team[bp.team_id] += bp.points

    for team_id, bonus in bonus_by_team.items():
        entry_for(team_id).bonus_points = bonus

    for entry in entries.values():
        entry.points = rules.points_for(entry.wins, entry.draws, entry.losses)

    ranked = rank_standings(list(entries.values()))
    prior = prior_ranks or {}
    for entry in ranked:
        if entry.team_id not in prior:
            continue
        old_rank, old_previous = prior[entry.team_id]
        # Unchanged rank keeps the last movement.
        entry.previous_rank = old_rank if old_rank != entry.rank else old_previous
    return ranked


def compute_team_form(games: Iterable[GameRecord], limit: int = 5) -> list[TeamForm]:
    """Latest ``limit`` completed results per team, most recently finalized first.

    Games without a final score are skipped rather than raising; form is a
    read-only view, not a recompute.
    """
    finished = [
        g
        for g in games
        if g.is_completed and g.home_score is not None and g.away_score is not None
    ]
    # Unstamped games sort after stamped ones; id keeps ties stable.
    finished.sort(key=lambda g: g.id)
    finished.sort(key=lambda g: (g.finalized_at is not None, g.finalized_at), reverse=True)

    forms: dict[str, list[FormResult]] = {}
    for g in finished:
        for team_id, opponent_id, gf, ga in (
            (g.home_team_id, g.away_team_id, g.home_score, g.away_score),
            (g.away_team_id, g.home_team_id, g.away_score, g.home_score),
        ):
            form = forms.setdefault(team_id, [])
            if len(form) >= limit:
                continue
            result = "W" if gf > ga else "L" if gf < ga else "D"
            form.append(
                FormResult(result=result, opponent_id=opponent_id, goals_for=gf, goals_against=ga)
            )

    return [TeamForm(team_id=team_id, form=form) for team_id, form in forms.items()]


class StandingsAggregator:
    """Recomputes one round's standings from stored games and bonus points."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo
        self.rules = ScoringRuleResolver(repo)

    async def compute(self, round_id: str) -> list[StandingEntry]:
        """Aggregate without writing. Raises ConfigurationMissing / InvalidGameState."""
        rules = await self.rules.resolve(round_id)
        games = [game_record(g) for g in await self.repo.get_completed_games([round_id])]
        bonus = [
            BonusPointEntry(
                round_id=bp.round_id, team_id=bp.team_id, points=bp.points, reason=bp.reason
            )
            for bp in await self.repo.get_bonus_points_for_round(round_id)
        ]
        prior_ranks = await self.repo.get_standing_ranks(round_id)
        return aggregate_standings(rules, games, bonus, prior_ranks)

    async def recalc(self, round_id: str) -> int:
        """Replace the round's standings. Returns the number of rows written.

        Must run inside the round's scope lock; the caller commits.
        """
        entries = await self.compute(round_id)
        written = await self.repo.replace_standings(round_id, entries)
        logger.info("standings_recalculated round=%s teams=%d", round_id, written)
        return written
