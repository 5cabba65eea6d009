"""SQLAlchemy ORM models for the Puckboard database.

Input tables (seasons, rounds, teams, players, games, bonus_points,
game_events, game_lineups, goalie_game_stats) are written by the league admin
and only read by the recalculation engine. Output tables (standings,
player_season_stats, goalie_season_stats) are owned by the engine and replaced
wholesale on every recompute.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from puckboard.config import DEFAULT_GOALIE_MIN_GAMES


def _uuid() -> str:
    return str(uuid.uuid4())


def derived_id(scope_id: str, key: str) -> str:
    """Stable row id for engine-owned rows, so a recompute with unchanged
    inputs writes the same primary keys again."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"puckboard:{scope_id}:{key}"))


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class SeasonRow(Base):
    __tablename__ = "seasons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    rounds: Mapped[list[RoundRow]] = relationship(back_populates="season")


class RoundRow(Base):
    """A scoring-configured phase of a season.

    Point columns are nullable: a round without point values has no scoring
    configuration and cannot be ranked.
    """

    __tablename__ = "rounds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    season_id: Mapped[str] = mapped_column(ForeignKey("seasons.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    round_type: Mapped[str] = mapped_column(String(20), default="regular")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    points_win: Mapped[int | None] = mapped_column(Integer, nullable=True, default=2)
    points_draw: Mapped[int | None] = mapped_column(Integer, nullable=True, default=1)
    points_loss: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)
    counts_for_player_stats: Mapped[bool] = mapped_column(Boolean, default=True)
    counts_for_goalie_stats: Mapped[bool] = mapped_column(Boolean, default=True)
    goalie_min_games: Mapped[int] = mapped_column(Integer, default=DEFAULT_GOALIE_MIN_GAMES)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    season: Mapped[SeasonRow] = relationship(back_populates="rounds")

    __table_args__ = (Index("ix_rounds_season_id", "season_id"),)


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)


class PlayerRow(Base):
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str] = mapped_column(String(10), default="forward")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    round_id: Mapped[str] = mapped_column(ForeignKey("rounds.id"), nullable=False)
    home_team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    away_team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="scheduled")
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        Index("ix_games_round_id", "round_id"),
        Index("ix_games_round_status", "round_id", "status"),
    )


class BonusPointRow(Base):
    """Operator-assigned adjustment on top of game-derived points."""

    __tablename__ = "bonus_points"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    round_id: Mapped[str] = mapped_column(ForeignKey("rounds.id"), nullable=False)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    __table_args__ = (Index("ix_bonus_points_round_id", "round_id"),)


class GameEventRow(Base):
    __tablename__ = "game_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    team_id: Mapped[str | None] = mapped_column(ForeignKey("teams.id"), nullable=True)
    event_type: Mapped[str] = mapped_column(String(10), nullable=False)  # goal, assist, penalty
    penalty_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    __table_args__ = (Index("ix_game_events_game_id", "game_id"),)


class GameLineupRow(Base):
    """Participation record: the player dressed for the game."""

    __tablename__ = "game_lineups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    position: Mapped[str] = mapped_column(String(10), default="forward")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    __table_args__ = (
        Index("ix_game_lineups_game_id", "game_id"),
        UniqueConstraint("game_id", "player_id", name="uq_lineup_player"),
    )


class GoalieGameStatRow(Base):
    __tablename__ = "goalie_game_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    goalie_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    goals_against: Mapped[int] = mapped_column(Integer, default=0)
    minutes_played: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    __table_args__ = (Index("ix_goalie_game_stats_game_id", "game_id"),)


class StandingRow(Base):
    """One team's line in a round's standings. Replaced wholesale on recompute."""

    __tablename__ = "standings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    round_id: Mapped[str] = mapped_column(ForeignKey("rounds.id"), nullable=False)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0)
    wins: Mapped[int] = mapped_column(Integer, default=0)
    draws: Mapped[int] = mapped_column(Integer, default=0)
    losses: Mapped[int] = mapped_column(Integer, default=0)
    goals_for: Mapped[int] = mapped_column(Integer, default=0)
    goals_against: Mapped[int] = mapped_column(Integer, default=0)
    goal_difference: Mapped[int] = mapped_column(Integer, default=0)
    points: Mapped[int] = mapped_column(Integer, default=0)
    bonus_points: Mapped[int] = mapped_column(Integer, default=0)
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_standings_round_id", "round_id"),
        UniqueConstraint("round_id", "team_id", name="uq_standing_team"),
    )


class PlayerSeasonStatRow(Base):
    __tablename__ = "player_season_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    season_id: Mapped[str] = mapped_column(ForeignKey("seasons.id"), nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0)
    goals: Mapped[int] = mapped_column(Integer, default=0)
    assists: Mapped[int] = mapped_column(Integer, default=0)
    points: Mapped[int] = mapped_column(Integer, default=0)
    penalty_minutes: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        Index("ix_player_season_stats_season_id", "season_id"),
        UniqueConstraint("player_id", "season_id", name="uq_player_season"),
    )


class GoalieSeasonStatRow(Base):
    __tablename__ = "goalie_season_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    goalie_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    season_id: Mapped[str] = mapped_column(ForeignKey("seasons.id"), nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0)
    goals_against: Mapped[int] = mapped_column(Integer, default=0)
    minutes_played: Mapped[int] = mapped_column(Integer, default=0)
    gaa: Mapped[float | None] = mapped_column(Float, nullable=True)
    eligible: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("ix_goalie_season_stats_season_id", "season_id"),
        UniqueConstraint("goalie_id", "season_id", name="uq_goalie_season"),
    )
