"""
End-to-end pipeline: collect from the stats API, store, predict, price.

Both providers are replaced by FakeSession routes; everything else is the
real wiring.
"""

import pytest

from propedge.analysis.ml_predictor import ModelCache, PseudoMLPredictor
from propedge.analysis.probability import ProbabilityCalculator
from propedge.analysis.value_scan import scan_value_bets
from propedge.ingestion.collector import DataCollector
from propedge.ingestion.odds import OddsClient
from propedge.ingestion.stats_api import StatsAPIClient
from propedge.models import GameContext
from propedge.storage import FileCache, PlayerStore

from tests.fixtures.sample_api_responses import (
    EVENT_ID,
    ODDS_BASE_URL,
    ODDS_NOW,
    PLAYER_ID,
    STATS_BASE_URL,
    TEAM_ID,
    get_box_score_response,
    get_event_odds_response,
    get_event_search_response,
    get_games_response,
    get_player_search_response,
    get_teams_response,
)
from tests.mocks import FakeSession, FixedClock, StubLimiter


def _team_games(params):
    if str(params.get("team")) == str(TEAM_ID):
        return get_games_response(12)
    return {"errors": [], "response": []}


def _box_score(params):
    game_id = params["id"]
    return get_box_score_response(game_id, points=18 + game_id % 11)


@pytest.fixture
def stats_session():
    return FakeSession({
        "players": get_player_search_response(),
        "teams": get_teams_response(),
        "games": _team_games,
        "games/statistics/players": _box_score,
    })


@pytest.fixture
def odds_session():
    return FakeSession({
        "events/search": get_event_search_response(),
        "odds": get_event_odds_response(),
    })


@pytest.fixture
def pipeline(tmp_path, stats_session, odds_session):
    store = PlayerStore(tmp_path / "players")
    stats_client = StatsAPIClient("stats-key", base_url=STATS_BASE_URL, cache=FileCache(tmp_path / "cache"), session=stats_session)
    odds_client = OddsClient("odds-key", base_url=ODDS_BASE_URL, session=odds_session, clock=lambda: ODDS_NOW)
    calculator = ProbabilityCalculator(
        store,
        collector=DataCollector(stats_client, store),
        odds_client=odds_client,
        predictor=PseudoMLPredictor(ModelCache(clock=FixedClock())),
        seasons=["2024-2025"],
    )
    return store, calculator, odds_client


class TestPipeline:
    def test_collect_on_demand_then_reuse(self, pipeline, stats_session):
        store, calculator, _ = pipeline

        first = calculator.calculate_probability("LeBron James", "points", 24.5)

        assert first.sample_size == 12
        assert store.load(PLAYER_ID) is not None
        assert stats_session.endpoints().count("players") == 1

        calculator.calculate_probability("LeBron James", "pra", 40.5)
        assert stats_session.endpoints().count("players") == 1

    def test_predict_with_odds(self, pipeline):
        _, calculator, _ = pipeline

        result = calculator.predict_with_odds(
            "LeBron James", "points", 25.5, GameContext(is_home=False), event_id=str(EVENT_ID)
        )

        assert result.odds.available is True
        assert list(result.odds.bookmakers) == ["Bet365", "Kambi"]
        assert result.odds.bookmakers["Kambi"].quote.over_odds == 2.1
        assert result.odds.recommendation in ("OVER", "UNDER", "NO VALUE")

        data = result.to_dict()
        assert data["odds"]["bookmakers"]["Bet365"]["line"] == 25.5
        assert data["player"] == "LeBron James"

    def test_player_not_in_market(self, pipeline):
        _, calculator, _ = pipeline

        result = calculator.predict_with_odds("LeBron James", "assists", 6.5, event_id=str(EVENT_ID))

        assert result.odds.to_dict() == {"available": False, "message": "Player not found in odds"}

    def test_value_scan_over_stored_players(self, pipeline):
        store, calculator, odds_client = pipeline
        calculator.calculate_probability("LeBron James", "points", 24.5)

        events = list(scan_value_bets(store, calculator, odds_client, rate_limiter=StubLimiter()))

        assert events[-1] == {"type": "complete"}
        progress = [event for event in events if event["type"] == "progress"]
        assert progress == [{"type": "progress", "processed": 1, "total": 1, "player": "LeBron James"}]
        for event in events:
            if event["type"] == "bet":
                assert event["data"]["opponent"] == "Denver Nuggets"
                assert event["data"]["is_home"] is False
                assert event["data"]["ev_raw"] > 0.05
