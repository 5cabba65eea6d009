"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Input tables (games, events, bonus points)
are read by the recalculation engine; output tables (standings, season stats)
are only ever written through the ``replace_*`` methods, which swap a scope's
entire row set inside the caller's transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from puckboard.config import DEFAULT_GOALIE_MIN_GAMES
from puckboard.db.models import (
    BonusPointRow,
    GameEventRow,
    GameLineupRow,
    GameRow,
    GoalieGameStatRow,
    GoalieSeasonStatRow,
    PlayerRow,
    PlayerSeasonStatRow,
    RoundRow,
    SeasonRow,
    StandingRow,
    TeamRow,
    derived_id,
)
from puckboard.models.standings import StandingEntry
from puckboard.models.stats import GoalieSeasonLine, PlayerSeasonLine


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Season / Round ---

    async def create_season(
        self,
        name: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> SeasonRow:
        row = SeasonRow(name=name, start_date=start_date, end_date=end_date)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_season(self, season_id: str) -> SeasonRow | None:
        return await self.session.get(SeasonRow, season_id)

    async def create_round(
        self,
        season_id: str,
        name: str,
        *,
        points_win: int | None = 2,
        points_draw: int | None = 1,
        points_loss: int | None = 0,
        counts_for_player_stats: bool = True,
        counts_for_goalie_stats: bool = True,
        goalie_min_games: int = DEFAULT_GOALIE_MIN_GAMES,
        round_type: str = "regular",
        sort_order: int = 0,
    ) -> RoundRow:
        row = RoundRow(
            season_id=season_id,
            name=name,
            points_win=points_win,
            points_draw=points_draw,
            points_loss=points_loss,
            counts_for_player_stats=counts_for_player_stats,
            counts_for_goalie_stats=counts_for_goalie_stats,
            goalie_min_games=goalie_min_games,
            round_type=round_type,
            sort_order=sort_order,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_round(self, round_id: str) -> RoundRow | None:
        return await self.session.get(RoundRow, round_id)

    async def get_rounds_for_season(self, season_id: str) -> list[RoundRow]:
        """Rounds of a season in play order (sort_order, then creation)."""
        stmt = (
            select(RoundRow)
            .where(RoundRow.season_id == season_id)
            .order_by(RoundRow.sort_order, RoundRow.created_at, RoundRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Teams / Players ---

    async def create_team(self, name: str) -> TeamRow:
        row = TeamRow(name=name)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_team(self, team_id: str) -> TeamRow | None:
        return await self.session.get(TeamRow, team_id)

    async def get_team_names(self, team_ids: Iterable[str]) -> dict[str, str]:
        """Batch-resolve team names in one query."""
        ids = list(team_ids)
        if not ids:
            return {}
        result = await self.session.execute(select(TeamRow).where(TeamRow.id.in_(ids)))
        return {t.id: t.name for t in result.scalars().all()}

    async def create_player(self, name: str, position: str = "forward") -> PlayerRow:
        row = PlayerRow(name=name, position=position)
        self.session.add(row)
        await self.session.flush()
        return row

    # --- Games ---

    async def create_game(
        self,
        round_id: str,
        home_team_id: str,
        away_team_id: str,
        home_score: int | None = None,
        away_score: int | None = None,
        status: str = "scheduled",
        finalized_at: datetime | None = None,
    ) -> GameRow:
        if status == "completed" and finalized_at is None:
            finalized_at = datetime.now(UTC)
        row = GameRow(
            round_id=round_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            home_score=home_score,
            away_score=away_score,
            status=status,
            finalized_at=finalized_at,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_game(self, game_id: str) -> GameRow | None:
        return await self.session.get(GameRow, game_id)

    async def update_game_result(
        self,
        game_id: str,
        status: str,
        home_score: int | None = None,
        away_score: int | None = None,
    ) -> GameRow | None:
        """Set a game's status and scores. Stamps ``finalized_at`` on completion."""
        row = await self.session.get(GameRow, game_id)
        if row is None:
            return None
        row.status = status
        row.home_score = home_score
        row.away_score = away_score
        if status == "completed":
            row.finalized_at = datetime.now(UTC)
        await self.session.flush()
        return row

    async def get_completed_games(self, round_ids: Iterable[str]) -> list[GameRow]:
        """Completed games across *round_ids*, in a stable order."""
        ids = list(round_ids)
        if not ids:
            return []
        stmt = (
            select(GameRow)
            .where(GameRow.round_id.in_(ids), GameRow.status == "completed")
            .order_by(GameRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Bonus points ---

    async def add_bonus_point(
        self,
        round_id: str,
        team_id: str,
        points: int,
        reason: str | None = None,
    ) -> BonusPointRow:
        row = BonusPointRow(round_id=round_id, team_id=team_id, points=points, reason=reason)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update_bonus_point(self, bonus_id: str, **changes: object) -> BonusPointRow | None:
        """Apply the given changes to points and/or reason. ``reason=None`` clears it."""
        row = await self.session.get(BonusPointRow, bonus_id)
        if row is None:
            return None
        for field in ("points", "reason"):
            if field in changes:
                setattr(row, field, changes[field])
        await self.session.flush()
        return row

    async def delete_bonus_point(self, bonus_id: str) -> BonusPointRow | None:
        """Delete a bonus entry; returns the deleted row so callers know its round."""
        row = await self.session.get(BonusPointRow, bonus_id)
        if row is None:
            return None
        await self.session.delete(row)
        await self.session.flush()
        return row

    async def get_bonus_points_for_round(self, round_id: str) -> list[BonusPointRow]:
        stmt = (
            select(BonusPointRow)
            .where(BonusPointRow.round_id == round_id)
            .order_by(BonusPointRow.created_at.desc(), BonusPointRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Event ledger ---

    async def record_game_event(
        self,
        game_id: str,
        player_id: str,
        event_type: str,
        team_id: str | None = None,
        penalty_minutes: int | None = None,
    ) -> GameEventRow:
        row = GameEventRow(
            game_id=game_id,
            player_id=player_id,
            event_type=event_type,
            team_id=team_id,
            penalty_minutes=penalty_minutes,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def add_lineup_entry(
        self,
        game_id: str,
        player_id: str,
        team_id: str,
        position: str = "forward",
    ) -> GameLineupRow:
        row = GameLineupRow(game_id=game_id, player_id=player_id, team_id=team_id, position=position)
        self.session.add(row)
        await self.session.flush()
        return row

    async def record_goalie_game_stat(
        self,
        game_id: str,
        goalie_id: str,
        goals_against: int,
        minutes_played: int,
    ) -> GoalieGameStatRow:
        row = GoalieGameStatRow(
            game_id=game_id,
            goalie_id=goalie_id,
            goals_against=goals_against,
            minutes_played=minutes_played,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_events_for_games(self, game_ids: Iterable[str]) -> list[GameEventRow]:
        ids = list(game_ids)
        if not ids:
            return []
        stmt = select(GameEventRow).where(GameEventRow.game_id.in_(ids)).order_by(GameEventRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_lineups_for_games(self, game_ids: Iterable[str]) -> list[GameLineupRow]:
        ids = list(game_ids)
        if not ids:
            return []
        stmt = select(GameLineupRow).where(GameLineupRow.game_id.in_(ids)).order_by(GameLineupRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_goalie_stats_for_games(self, game_ids: Iterable[str]) -> list[GoalieGameStatRow]:
        ids = list(game_ids)
        if not ids:
            return []
        stmt = (
            select(GoalieGameStatRow)
            .where(GoalieGameStatRow.game_id.in_(ids))
            .order_by(GoalieGameStatRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Standings (engine-owned) ---

    async def get_standings(self, round_id: str) -> list[StandingRow]:
        """Persisted standings for a round, best rank first."""
        stmt = (
            select(StandingRow)
            .where(StandingRow.round_id == round_id)
            .order_by(StandingRow.rank, StandingRow.team_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_standing_ranks(self, round_id: str) -> dict[str, tuple[int, int | None]]:
        """``(rank, previous_rank)`` per team, read before a replace."""
        stmt = select(StandingRow.team_id, StandingRow.rank, StandingRow.previous_rank).where(
            StandingRow.round_id == round_id
        )
        result = await self.session.execute(stmt)
        return {team_id: (rank, previous) for team_id, rank, previous in result.all()}

    async def replace_standings(self, round_id: str, entries: list[StandingEntry]) -> int:
        """Delete the round's rows and insert *entries* in their place.

        Runs in the caller's transaction; nothing is visible to other
        sessions until it commits. Returns the number of rows written.
        """
        await self.session.execute(delete(StandingRow).where(StandingRow.round_id == round_id))
        self.session.add_all(
            [
                StandingRow(
                    id=derived_id(round_id, e.team_id),
                    round_id=round_id,
                    team_id=e.team_id,
                    games_played=e.games_played,
                    wins=e.wins,
                    draws=e.draws,
                    losses=e.losses,
                    goals_for=e.goals_for,
                    goals_against=e.goals_against,
                    goal_difference=e.goal_difference,
                    points=e.points,
                    bonus_points=e.bonus_points,
                    total_points=e.total_points,
                    rank=e.rank,
                    previous_rank=e.previous_rank,
                )
                for e in entries
            ]
        )
        await self.session.flush()
        return len(entries)

    # --- Season stats (engine-owned) ---

    async def get_player_season_stats(self, season_id: str) -> list[PlayerSeasonStatRow]:
        """Scorer leaderboard order: points desc, goals desc."""
        stmt = (
            select(PlayerSeasonStatRow)
            .where(PlayerSeasonStatRow.season_id == season_id)
            .order_by(
                PlayerSeasonStatRow.points.desc(),
                PlayerSeasonStatRow.goals.desc(),
                PlayerSeasonStatRow.player_id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_player_season_stats(
        self, season_id: str, lines: list[PlayerSeasonLine]
    ) -> int:
        await self.session.execute(
            delete(PlayerSeasonStatRow).where(PlayerSeasonStatRow.season_id == season_id)
        )
        self.session.add_all(
            [
                PlayerSeasonStatRow(
                    id=derived_id(season_id, f"player:{line.player_id}"),
                    player_id=line.player_id,
                    season_id=season_id,
                    games_played=line.games_played,
                    goals=line.goals,
                    assists=line.assists,
                    points=line.points,
                    penalty_minutes=line.penalty_minutes,
                )
                for line in lines
            ]
        )
        await self.session.flush()
        return len(lines)

    async def get_goalie_season_stats(
        self, season_id: str, *, eligible_only: bool = False
    ) -> list[GoalieSeasonStatRow]:
        """Goalie leaderboard order: GAA ascending, goalies without minutes last."""
        stmt = select(GoalieSeasonStatRow).where(GoalieSeasonStatRow.season_id == season_id)
        if eligible_only:
            stmt = stmt.where(GoalieSeasonStatRow.eligible.is_(True))
        stmt = stmt.order_by(
            GoalieSeasonStatRow.gaa.is_(None),
            GoalieSeasonStatRow.gaa,
            GoalieSeasonStatRow.goalie_id,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_goalie_season_stats(
        self, season_id: str, lines: list[GoalieSeasonLine]
    ) -> int:
        await self.session.execute(
            delete(GoalieSeasonStatRow).where(GoalieSeasonStatRow.season_id == season_id)
        )
        self.session.add_all(
            [
                GoalieSeasonStatRow(
                    id=derived_id(season_id, f"goalie:{line.goalie_id}"),
                    goalie_id=line.goalie_id,
                    season_id=season_id,
                    games_played=line.games_played,
                    goals_against=line.goals_against,
                    minutes_played=line.minutes_played,
                    gaa=line.gaa,
                    eligible=line.eligible,
                )
                for line in lines
            ]
        )
        await self.session.flush()
        return len(lines)
