"""Tests for round standings: pure aggregation and the persisted recompute."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from puckboard.core.errors import ConfigurationMissing, InvalidGameState
from puckboard.core.locks import ScopeLockRegistry
from puckboard.core.recalc import recalc_standings
from puckboard.core.standings import aggregate_standings, compute_team_form
from puckboard.db.engine import get_session
from puckboard.db.repository import Repository
from puckboard.models.game import BonusPointEntry, GameRecord
from puckboard.models.rules import ScoringRules

RULES = ScoringRules(round_id="r1", season_id="s1", points_win=2, points_draw=1, points_loss=0)


def _game(gid: str, home: str, away: str, hs: int | None, as_: int | None, **kw) -> GameRecord:
    return GameRecord(
        id=gid,
        round_id="r1",
        home_team_id=home,
        away_team_id=away,
        home_score=hs,
        away_score=as_,
        status=kw.pop("status", "completed"),
        **kw,
    )


SCENARIO = [
    _game("g1", "a", "c", 5, 0),
    _game("g2", "a", "d", 4, 1),
    _game("g3", "a", "b", 1, 3),
    _game("g4", "b", "c", 2, 2),
    _game("g5", "b", "d", 2, 4),
]


async def _standings(engine: AsyncEngine, round_id: str) -> list[dict]:
    async with get_session(engine) as session:
        rows = await Repository(session).get_standings(round_id)
        return [
            {c.name: getattr(r, c.name) for c in r.__table__.columns}
            for r in rows
        ]


class TestAggregateStandings:
    def test_goal_difference_breaks_points_tie(self):
        bonus = [BonusPointEntry(round_id="r1", team_id="b", points=1)]
        table = aggregate_standings(RULES, SCENARIO, bonus)
        by_team = {e.team_id: e for e in table}

        a, b = by_team["a"], by_team["b"]
        assert (a.wins, a.draws, a.losses) == (2, 0, 1)
        assert (a.goals_for, a.goals_against, a.goal_difference) == (10, 4, 6)
        assert a.total_points == 4
        assert (b.wins, b.draws, b.losses) == (1, 1, 1)
        assert (b.goals_for, b.goals_against, b.goal_difference) == (7, 7, 0)
        assert (b.points, b.bonus_points, b.total_points) == (3, 1, 4)
        assert a.rank == 1
        assert b.rank == 2
        assert [e.team_id for e in table] == ["a", "b", "d", "c"]

    def test_games_played_sum_is_twice_completed_games(self):
        games = SCENARIO + [_game("g6", "c", "d", None, None, status="scheduled")]
        table = aggregate_standings(RULES, games)
        assert sum(e.games_played for e in table) == 2 * len(SCENARIO)

    def test_custom_point_values(self):
        rules = RULES.model_copy(update={"points_win": 3, "points_draw": 1, "points_loss": -1})
        by_team = {e.team_id: e for e in aggregate_standings(rules, SCENARIO)}
        assert by_team["a"].points == 3 + 3 - 1
        assert by_team["b"].points == 3 + 1 - 1

    def test_only_completed_games_count(self):
        games = [
            _game("g1", "a", "b", 2, 1),
            _game("g2", "a", "b", 5, 0, status="postponed"),
            _game("g3", "a", "b", None, None, status="in_progress"),
        ]
        by_team = {e.team_id: e for e in aggregate_standings(RULES, games)}
        assert by_team["a"].games_played == 1
        assert by_team["a"].goals_for == 2

    def test_bonus_only_team_gets_row(self):
        bonus = [BonusPointEntry(round_id="r1", team_id="z", points=2)]
        by_team = {e.team_id: e for e in aggregate_standings(RULES, SCENARIO, bonus)}
        assert by_team["z"].games_played == 0
        assert by_team["z"].total_points == 2

    def test_bonus_entries_sum(self):
        bonus = [
            BonusPointEntry(round_id="r1", team_id="c", points=2),
            BonusPointEntry(round_id="r1", team_id="c", points=-3),
        ]
        by_team = {e.team_id: e for e in aggregate_standings(RULES, SCENARIO, bonus)}
        assert by_team["c"].bonus_points == -1
        assert by_team["c"].total_points == 0

    def test_missing_score_fails_whole_round(self):
        games = SCENARIO + [_game("bad", "c", "d", 3, None)]
        with pytest.raises(InvalidGameState) as exc_info:
            aggregate_standings(RULES, games)
        assert exc_info.value.game_id == "bad"
        assert exc_info.value.scope == "round"
        assert exc_info.value.scope_id == "r1"

    def test_negative_score_rejected(self):
        with pytest.raises(InvalidGameState, match="negative"):
            aggregate_standings(RULES, [_game("neg", "a", "b", -1, 2)])

    def test_empty_round(self):
        assert aggregate_standings(RULES, []) == []


class TestPreviousRank:
    def test_first_recompute_has_no_previous_rank(self):
        table = aggregate_standings(RULES, SCENARIO)
        assert all(e.previous_rank is None for e in table)

    def test_moved_team_records_old_rank(self):
        prior = {"a": (2, None), "b": (1, None), "d": (3, None), "c": (4, None)}
        by_team = {e.team_id: e for e in aggregate_standings(RULES, SCENARIO, prior_ranks=prior)}
        # b has no bonus here, so a leads on points
        assert by_team["a"].previous_rank == 2
        assert by_team["b"].previous_rank == 1
        assert by_team["c"].previous_rank is None

    def test_unchanged_rank_keeps_last_movement(self):
        prior = {"a": (1, 3)}
        by_team = {e.team_id: e for e in aggregate_standings(RULES, SCENARIO, prior_ranks=prior)}
        assert by_team["a"].previous_rank == 3


class TestTeamForm:
    def test_latest_first_and_limited(self):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        games = [
            _game(f"g{i}", "a", "b", i % 3, 1, finalized_at=base + timedelta(days=i))
            for i in range(6)
        ]
        forms = {f.team_id: f.form for f in compute_team_form(games, limit=3)}
        # g5: 2-1, g4: 1-1, g3: 0-1
        assert [r.result for r in forms["a"]] == ["W", "D", "L"]
        assert [r.result for r in forms["b"]] == ["L", "D", "W"]
        assert forms["a"][0].opponent_id == "b"

    def test_skips_games_without_result(self):
        games = [
            _game("g1", "a", "b", None, None),
            _game("g2", "a", "b", 1, 0, status="postponed"),
        ]
        assert compute_team_form(games) == []


class TestStandingsRecalc:
    async def test_scenario_persisted(self, engine, locks, league):
        summary = await recalc_standings(engine, locks, league["round"])
        assert summary.scope == "round"
        assert summary.scope_id == league["round"]
        assert summary.rows_written == 4

        rows = await _standings(engine, league["round"])
        assert [r["team_id"] for r in rows] == [
            league["alpha"],
            league["beta"],
            league["delta"],
            league["gamma"],
        ]
        assert [r["rank"] for r in rows] == [1, 2, 3, 4]
        assert rows[0]["total_points"] == rows[1]["total_points"] == 4
        assert rows[1]["bonus_points"] == 1
        assert sum(r["games_played"] for r in rows) == 10

    async def test_recompute_is_idempotent(self, engine, locks, league):
        await recalc_standings(engine, locks, league["round"])
        first = await _standings(engine, league["round"])
        await recalc_standings(engine, locks, league["round"])
        second = await _standings(engine, league["round"])
        assert first == second

    async def test_bonus_changes_only_that_team(self, engine, locks, league):
        await recalc_standings(engine, locks, league["round"])
        rows = await _standings(engine, league["round"])
        before = {r["team_id"]: r["total_points"] for r in rows}

        async with get_session(engine) as session:
            await Repository(session).add_bonus_point(league["round"], league["gamma"], 2)
        await recalc_standings(engine, locks, league["round"])
        rows = await _standings(engine, league["round"])
        after = {r["team_id"]: r["total_points"] for r in rows}

        assert after[league["gamma"]] == before[league["gamma"]] + 2
        for team in ("alpha", "beta", "delta"):
            assert after[league[team]] == before[league[team]]

    async def test_correction_to_postponed_removes_game(self, engine, locks, league):
        await recalc_standings(engine, locks, league["round"])
        async with get_session(engine) as session:
            await Repository(session).update_game_result(league["game3"], "postponed")
        await recalc_standings(engine, locks, league["round"])

        by_team = {r["team_id"]: r for r in await _standings(engine, league["round"])}
        alpha, beta = by_team[league["alpha"]], by_team[league["beta"]]
        assert (alpha["games_played"], alpha["losses"], alpha["goals_against"]) == (2, 0, 1)
        assert (beta["games_played"], beta["wins"], beta["goals_for"]) == (2, 0, 4)
        assert sum(r["games_played"] for r in by_team.values()) == 8

    async def test_previous_rank_after_move(self, engine, locks, league):
        await recalc_standings(engine, locks, league["round"])
        async with get_session(engine) as session:
            await Repository(session).add_bonus_point(league["round"], league["delta"], 3)
        await recalc_standings(engine, locks, league["round"])

        by_team = {r["team_id"]: r for r in await _standings(engine, league["round"])}
        assert by_team[league["delta"]]["rank"] == 1
        assert by_team[league["delta"]]["previous_rank"] == 3
        assert by_team[league["alpha"]]["previous_rank"] == 1
        assert by_team[league["gamma"]]["previous_rank"] is None

    async def test_invalid_game_leaves_rows_untouched(self, engine, locks, league):
        await recalc_standings(engine, locks, league["round"])
        before = await _standings(engine, league["round"])

        async with get_session(engine) as session:
            bad = await Repository(session).create_game(
                league["round"], league["gamma"], league["delta"], status="completed"
            )
        with pytest.raises(InvalidGameState) as exc_info:
            await recalc_standings(engine, locks, league["round"])
        assert exc_info.value.game_id == bad.id

        assert await _standings(engine, league["round"]) == before

    async def test_round_without_points_is_configuration_missing(
        self, engine: AsyncEngine, locks: ScopeLockRegistry
    ):
        async with get_session(engine) as session:
            repo = Repository(session)
            season = await repo.create_season("2026")
            rnd = await repo.create_round(season.id, "Unconfigured", points_win=None)
        with pytest.raises(ConfigurationMissing, match="points_win"):
            await recalc_standings(engine, locks, rnd.id)

    async def test_unknown_round(self, engine: AsyncEngine, locks: ScopeLockRegistry):
        with pytest.raises(ConfigurationMissing) as exc_info:
            await recalc_standings(engine, locks, "no-such-round")
        assert exc_info.value.scope_id == "no-such-round"

    async def test_empty_round_writes_nothing(self, engine: AsyncEngine, locks: ScopeLockRegistry):
        async with get_session(engine) as session:
            repo = Repository(session)
            season = await repo.create_season("2026")
            rnd = await repo.create_round(season.id, "Preseason")
        summary = await recalc_standings(engine, locks, rnd.id)
        assert summary.rows_written == 0
        assert await _standings(engine, rnd.id) == []
