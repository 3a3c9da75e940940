"""Tests for the FastAPI routes, error mapping and the value bet stream."""

import json

import pytest
from fastapi.testclient import TestClient

from propedge.analysis.ml_predictor import ModelCache, PseudoMLPredictor
from propedge.analysis.probability import ProbabilityCalculator
from propedge.api import create_app
from propedge.api.server import error_body, parse_min_ev
from propedge.config import Config
from propedge.exceptions import ConfigurationError, DataFetchError, TeamNotFoundError
from propedge.models.quotes import BookmakerQuote

from tests.fixtures.sample_api_responses import EVENT_ID, TEAM_NAME, build_dataset, get_sample_points
from tests.mocks import FixedClock, MockCollector, MockOddsClient, MockPlayerStore

NEXT_MATCH = {
    "id": EVENT_ID,
    "opponent": "Denver Nuggets",
    "isHome": False,
    "date": "2025-03-05T00:30:00Z",
    "homeTeam": "Denver Nuggets",
    "awayTeam": TEAM_NAME,
}


@pytest.fixture
def store():
    return MockPlayerStore([build_dataset(get_sample_points(20))])


@pytest.fixture
def odds_client():
    quotes = {"Bet365": BookmakerQuote("Bet365", 27.5, 5.0, 5.0, "Points O/U")}
    return MockOddsClient(
        next_matches={TEAM_NAME: NEXT_MATCH},
        odds_data={"id": EVENT_ID},
        quotes={("LeBron James", "points"): quotes},
    )


def _app(store, odds_client, collector=None, calculator=None):
    calculator = calculator or ProbabilityCalculator(
        store,
        odds_client=odds_client,
        predictor=PseudoMLPredictor(ModelCache(clock=FixedClock())),
    )
    return create_app(
        config=Config.from_env(),
        calculator=calculator,
        store=store,
        collector=collector or MockCollector(build_dataset(get_sample_points(12))),
        odds_client=odds_client,
    )


@pytest.fixture
def client(store, odds_client):
    return TestClient(_app(store, odds_client))


def _predict_body(**overrides):
    body = {"playerName": "LeBron James", "statType": "points", "line": 27.5, "gameContext": {"isHome": True}}
    body.update(overrides)
    return body


def test_error_body():
    assert error_body("boom") == {"success": False, "error": "boom"}
    assert error_body("boom", [{"field": "line"}])["details"] == [{"field": "line"}]


@pytest.mark.parametrize("value,expected", [(None, 0.05), ("abc", 0.05), ("0", 0.05), ("0.1", 0.1)])
def test_parse_min_ev(value, expected):
    assert parse_min_ev(value) == expected


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert "success" not in data


def test_cors(client):
    response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})

    assert response.headers["access-control-allow-origin"] == "*"


class TestPredict:
    def test_success(self, client):
        response = client.post("/api/predict", json=_predict_body())

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["player"] == "LeBron James"
        assert data["prop"] == "POINTS 27.5"
        assert data["game_context"]["is_home"] is True
        assert data["recommendation"]["bet"] in ("OVER", "UNDER", "NO BET")

    def test_snake_case_and_alias(self, client):
        response = client.post("/api/predict", json={"player_name": "LeBron James", "stat_type": "pts", "line": 27.5})

        assert response.status_code == 200
        assert response.json()["stat_type"] == "points"

    def test_missing_fields(self, client):
        response = client.post("/api/predict", json={"statType": "points"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Validation failed"
        assert data["details"]

    def test_invalid_stat_type(self, client):
        response = client.post("/api/predict", json=_predict_body(statType="steals"))

        assert response.status_code == 400
        assert "statType must be one of" in response.json()["details"][0]["message"]

    def test_negative_line(self, client):
        assert client.post("/api/predict", json=_predict_body(line=-1)).status_code == 400

    def test_unknown_player(self, client):
        response = client.post("/api/predict", json=_predict_body(playerName="Nikola Jokic"))

        assert response.status_code == 404
        assert "Nikola Jokic" in response.json()["error"]

    def test_insufficient_data(self, odds_client):
        client = TestClient(_app(MockPlayerStore([build_dataset([20] * 6)]), odds_client))

        response = client.post("/api/predict", json=_predict_body(line=19.5))

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Insufficient data"
        assert data["details"]["games_found"] == 6
        assert data["details"]["games_required"] == 10

    def test_unexpected_error(self, store, odds_client):
        class BrokenCalculator:
            def calculate_probability(self, *args, **kwargs):
                raise RuntimeError("boom")

        client = TestClient(_app(store, odds_client, calculator=BrokenCalculator()), raise_server_exceptions=False)

        response = client.post("/api/predict", json=_predict_body())

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}


class TestAnalyze:
    def test_per_prop_errors(self, client):
        response = client.post(
            "/api/analyze",
            json={"playerName": "LeBron James", "lines": {"points": 27.5, "steals": 1.5}},
        )

        assert response.status_code == 200
        props = response.json()["props"]
        assert "probability" in props["points"]
        assert "error" in props["steals"]

    def test_empty_lines(self, client):
        response = client.post("/api/analyze", json={"playerName": "LeBron James", "lines": {}})

        assert response.status_code == 400


class TestPredictWithOdds:
    def test_with_event(self, client, odds_client):
        response = client.post("/api/predict-with-odds", json=_predict_body(eventId=EVENT_ID))

        assert response.status_code == 200
        odds = response.json()["odds"]
        assert odds["available"] is True
        assert "Bet365" in odds["bookmakers"]
        assert ("get_event_odds", str(EVENT_ID)) in odds_client.calls

    def test_without_event(self, client):
        response = client.post("/api/predict-with-odds", json=_predict_body())

        assert response.json()["odds"] == {"available": False, "message": "No event ID provided"}


class TestEdge:
    def test_edge(self, client):
        response = client.post("/api/edge", json=_predict_body(bookmakerOdds=-110))

        assert response.status_code == 200
        edge = response.json()["edge"]
        assert edge["implied_probability"] == pytest.approx(0.5238, abs=1e-4)
        assert edge["recommendation"] in ("BET", "NO BET")

    def test_zero_odds_rejected(self, client):
        assert client.post("/api/edge", json=_predict_body(bookmakerOdds=0)).status_code == 400


class TestCollect:
    def test_created(self, client):
        response = client.post("/api/collect", json={"playerName": "LeBron James", "teamName": "Lakers"})

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["team"] == TEAM_NAME
        assert data["seasons"] == ["2024-2025"]
        assert data["total_games"] == 12

    def test_team_required(self, client):
        response = client.post("/api/collect", json={"playerName": "LeBron James"})

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "error,status",
        [
            (TeamNotFoundError("Seattle", "2024-2025"), 404),
            (DataFetchError("api_sports", "games: HTTP 500"), 502),
            (ConfigurationError("API_SPORTS_KEY", "API key required"), 500),
        ],
    )
    def test_error_mapping(self, store, odds_client, error, status):
        client = TestClient(_app(store, odds_client, collector=MockCollector(error=error)))

        response = client.post("/api/collect", json={"playerName": "LeBron James", "teamName": "Seattle"})

        assert response.status_code == status
        assert response.json()["error"] == str(error)


class TestPlayers:
    def test_list(self, client):
        players = client.get("/api/players").json()["players"]

        assert [player["name"] for player in players] == ["LeBron James"]
        assert players[0]["totalGames"] == 20

    def test_detail(self, client):
        data = client.get("/api/player/lebron").json()

        assert data["player"]["id"] == 265
        assert data["seasons"] == [{"season": "2024-2025", "team": TEAM_NAME, "games": 20}]
        assert data["total_games"] == 20

    def test_detail_missing(self, client):
        assert client.get("/api/player/Nobody").status_code == 404


class TestNextMatch:
    def test_found(self, client):
        data = client.get(f"/api/next-match/{TEAM_NAME}").json()

        assert data["has_match"] is True
        assert data["opponent"] == "Denver Nuggets"
        assert data["is_home"] is False
        assert data["formatted_date"] == "Mar 4, 07:30 PM"

    def test_none(self, client):
        data = client.get("/api/next-match/Charlotte Hornets").json()

        assert data == {"success": True, "has_match": False, "message": "No upcoming matches found"}


def test_value_bet_stream(client):
    response = client.get("/api/value-bets", params={"minEV": "0.05"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = [json.loads(line[len("data: "):]) for line in response.text.splitlines() if line.startswith("data: ")]
    assert events[-1] == {"type": "complete"}
    assert any(event["type"] == "bet" for event in events)
    assert {"type": "progress", "processed": 1, "total": 1, "player": "LeBron James"} in events


def test_create_app_builds_missing_services():
    app = create_app(Config.from_env())

    assert TestClient(app).get("/api/health").status_code == 200
