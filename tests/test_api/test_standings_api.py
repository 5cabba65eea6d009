"""Tests for the standings and season stats endpoints."""

from puckboard.db.engine import get_session
from puckboard.db.repository import Repository


class TestHealth:
    async def test_health(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestStandingsEndpoints:
    async def test_recalculate_then_read(self, client, league):
        r = await client.post(f"/api/standings/{league['round']}/recalculate")
        assert r.status_code == 200
        assert r.json()["data"] == {
            "scope": "round",
            "scope_id": league["round"],
            "rows_written": 4,
        }

        r = await client.get("/api/standings", params={"round_id": league["round"]})
        assert r.status_code == 200
        data = r.json()["data"]
        assert [row["team_name"] for row in data] == ["Alpha", "Beta", "Delta", "Gamma"]
        assert [row["rank"] for row in data] == [1, 2, 3, 4]
        beta = data[1]
        assert beta["total_points"] == 4
        assert beta["bonus_points"] == 1
        assert beta["goal_difference"] == 0

    async def test_read_before_recalculate_is_empty(self, client, league):
        r = await client.get("/api/standings", params={"round_id": league["round"]})
        assert r.status_code == 200
        assert r.json()["data"] == []

    async def test_unknown_round_is_404(self, client):
        r = await client.post("/api/standings/no-such-round/recalculate")
        assert r.status_code == 404
        body = r.json()
        assert body["error"] == "configuration_missing"
        assert body["scope"] == "round"
        assert body["scope_id"] == "no-such-round"

    async def test_invalid_game_is_422(self, client, engine, league):
        async with get_session(engine) as session:
            bad = await Repository(session).create_game(
                league["round"], league["alpha"], league["beta"], 2, None, status="completed"
            )
        r = await client.post(f"/api/standings/{league['round']}/recalculate")
        assert r.status_code == 422
        body = r.json()
        assert body["error"] == "invalid_game_state"
        assert body["game_id"] == bad.id

    async def test_locked_round_is_409(self, app, client, league):
        async with app.state.recalc_locks.hold("round", league["round"]):
            r = await client.post(f"/api/standings/{league['round']}/recalculate")
        assert r.status_code == 409
        assert r.json()["error"] == "concurrent_recalc_conflict"

    async def test_recalculate_all(self, client, league):
        r = await client.post(
            "/api/standings/recalculate-all", params={"season_id": league["season"]}
        )
        assert r.status_code == 200
        assert r.json()["rounds_recalculated"] == 1

    async def test_recalculate_all_unknown_season(self, client):
        r = await client.post("/api/standings/recalculate-all", params={"season_id": "nope"})
        assert r.status_code == 404
        assert r.json()["scope"] == "season"

    async def test_form(self, client, league):
        r = await client.get(
            "/api/standings/form", params={"round_id": league["round"], "limit": 2}
        )
        assert r.status_code == 200
        forms = {f["team_id"]: f["form"] for f in r.json()["data"]}
        assert len(forms[league["alpha"]]) == 2
        assert len(forms[league["gamma"]]) == 2
        assert {res["result"] for res in forms[league["alpha"]]} <= {"W", "D", "L"}


class TestStatsEndpoints:
    async def test_recalculate_and_read(self, client, engine, league):
        async with get_session(engine) as session:
            repo = Repository(session)
            scorer = await repo.create_player("Scorer")
            goalie = await repo.create_player("Keeper", position="goalie")
            await repo.record_game_event(
                league["game1"], scorer.id, "goal", team_id=league["alpha"]
            )
            await repo.record_game_event(
                league["game1"], scorer.id, "assist", team_id=league["alpha"]
            )
            await repo.record_goalie_game_stat(league["game1"], goalie.id, 5, 60)
            await repo.record_goalie_game_stat(league["game2"], goalie.id, 4, 60)

        r = await client.post(f"/api/stats/{league['season']}/recalculate")
        assert r.status_code == 200
        assert [s["scope"] for s in r.json()["data"]] == ["player_stats", "goalie_stats"]

        r = await client.get("/api/stats/players", params={"season_id": league["season"]})
        players = r.json()["data"]
        assert players == [
            {
                "player_id": scorer.id,
                "games_played": 1,
                "goals": 1,
                "assists": 1,
                "points": 2,
                "penalty_minutes": 0,
            }
        ]

        r = await client.get("/api/stats/goalies", params={"season_id": league["season"]})
        goalies = r.json()["data"]
        assert goalies[0]["gaa"] == 4.5
        assert goalies[0]["eligible"] is True

    async def test_eligible_only_filter(self, client, engine, league):
        async with get_session(engine) as session:
            repo = Repository(session)
            goalie = await repo.create_player("Keeper", position="goalie")
            await repo.record_goalie_game_stat(league["game1"], goalie.id, 1, 60)

        await client.post(f"/api/stats/{league['season']}/recalculate")
        r = await client.get(
            "/api/stats/goalies",
            params={"season_id": league["season"], "eligible_only": "true"},
        )
        assert r.json()["data"] == []

    async def test_unknown_season_is_404(self, client):
        r = await client.post("/api/stats/no-such-season/recalculate")
        assert r.status_code == 404
        assert r.json()["scope"] == "player_stats"
