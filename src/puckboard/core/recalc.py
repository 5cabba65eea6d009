"""Recompute entry points called by the game finalization workflow.

Each entry point takes the scope lock, opens one session, recomputes the
scope's rows from stored state, swaps them in and commits, all while
holding the lock. Failures propagate as RecalcError subclasses; storage
errors are rolled back and surfaced as PersistenceFailure. Nothing is
retried here.

Usage:
    locks = ScopeLockRegistry(timeout=settings.puckboard_recalc_lock_timeout)
    summary = await recalc_standings(engine, locks, round_id)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from puckboard.core.errors import ConfigurationMissing, PersistenceFailure, RecalcError
from puckboard.core.goalie_stats import GoalieStatsAggregator
from puckboard.core.locks import ScopeLockRegistry
from puckboard.core.player_stats import PlayerStatsAggregator
from puckboard.core.standings import StandingsAggregator
from puckboard.db.engine import get_session
from puckboard.db.repository import Repository
from puckboard.models.stats import RecalcScope, RecalcSummary

logger = logging.getLogger(__name__)


async def _run_scoped(
    engine: AsyncEngine,
    locks: ScopeLockRegistry,
    scope: RecalcScope,
    scope_id: str,
    work: Callable[[Repository], Awaitable[int]],
) -> RecalcSummary:
    async with locks.hold(scope, scope_id):
        try:
            async with get_session(engine) as session:
                written = await work(Repository(session))
        except RecalcError as exc:
            logger.warning(
                "recalc_failed scope=%s id=%s kind=%s game=%s: %s",
                scope,
                scope_id,
                exc.kind,
                exc.game_id,
                exc.message,
            )
            raise
        except SQLAlchemyError as exc:
            logger.error("recalc_persistence_failed scope=%s id=%s: %s", scope, scope_id, exc)
            raise PersistenceFailure(
                f"writing {scope} rows for {scope_id} failed: {exc}",
                scope=scope,
                scope_id=scope_id,
            ) from exc
    return RecalcSummary(scope=scope, scope_id=scope_id, rows_written=written)


async def recalc_standings(
    engine: AsyncEngine, locks: ScopeLockRegistry, round_id: str
) -> RecalcSummary:
    """Recompute and replace one round's standings."""
    return await _run_scoped(
        engine, locks, "round", round_id, lambda repo: StandingsAggregator(repo).recalc(round_id)
    )


async def recalc_player_stats(
    engine: AsyncEngine, locks: ScopeLockRegistry, season_id: str
) -> RecalcSummary:
    """Recompute and replace one season's player stats."""
    return await _run_scoped(
        engine,
        locks,
        "player_stats",
        season_id,
        lambda repo: PlayerStatsAggregator(repo).recalc(season_id),
    )


async def recalc_goalie_stats(
    engine: AsyncEngine, locks: ScopeLockRegistry, season_id: str
) -> RecalcSummary:
    """Recompute and replace one season's goalie stats."""
    return await _run_scoped(
        engine,
        locks,
        "goalie_stats",
        season_id,
        lambda repo: GoalieStatsAggregator(repo).recalc(season_id),
    )


async def recalc_after_game_change(
    engine: AsyncEngine,
    locks: ScopeLockRegistry,
    game_id: str,
    previous_round_id: str | None = None,
) -> list[RecalcSummary]:
    """Recompute everything a game's status or score change can affect.

    Standings of the game's round (and of ``previous_round_id`` when the game
    was moved), then the season's player and goalie stats if any affected
    round feeds them. Corrections such as completed → postponed go through
    here too: the recompute simply no longer sees the game.
    """
    async with get_session(engine) as session:
        repo = Repository(session)
        game = await repo.get_game(game_id)
        if game is None:
            raise ConfigurationMissing(
                f"game {game_id} does not exist", scope="game", scope_id=game_id
            )
        round_ids = [game.round_id]
        if previous_round_id and previous_round_id != game.round_id:
            round_ids.append(previous_round_id)
        rounds = [r for r in [await repo.get_round(rid) for rid in round_ids] if r is not None]

    summaries = [await recalc_standings(engine, locks, rid) for rid in round_ids]

    player_seasons = sorted({r.season_id for r in rounds if r.counts_for_player_stats})
    goalie_seasons = sorted({r.season_id for r in rounds if r.counts_for_goalie_stats})
    for season_id in player_seasons:
        summaries.append(await recalc_player_stats(engine, locks, season_id))
    for season_id in goalie_seasons:
        summaries.append(await recalc_goalie_stats(engine, locks, season_id))

    logger.info(
        "game_change_recalculated game=%s rounds=%d seasons=%d",
        game_id,
        len(round_ids),
        len(set(player_seasons) | set(goalie_seasons)),
    )
    return summaries


async def recalc_all_rounds(
    engine: AsyncEngine, locks: ScopeLockRegistry, season_id: str
) -> list[RecalcSummary]:
    """Recompute standings for every round of a season, in play order."""
    async with get_session(engine) as session:
        repo = Repository(session)
        if await repo.get_season(season_id) is None:
            raise ConfigurationMissing(
                f"season {season_id} does not exist", scope="season", scope_id=season_id
            )
        round_ids = [r.id for r in await repo.get_rounds_for_season(season_id)]

    return [await recalc_standings(engine, locks, rid) for rid in round_ids]
