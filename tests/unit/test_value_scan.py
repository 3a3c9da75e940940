"""Unit tests for the value bet scanner."""

import pytest

from propedge.analysis.value_scan import estimate_line, scan_player, scan_value_bets
from propedge.exceptions import DataFetchError
from propedge.models import PlayerDataset
from propedge.models.quotes import BookmakerQuote

from tests.fixtures.sample_api_responses import EVENT_ID, TEAM_NAME, build_dataset
from tests.mocks import MockOddsClient, StubLimiter

NEXT_MATCH = {
    "id": EVENT_ID,
    "opponent": "Denver Nuggets",
    "isHome": False,
    "date": "2025-03-05T00:30:00Z",
}


def _generous_quotes(line):
    # Prices this long make at least one side clear any reasonable EV bar
    return {"Bet365": BookmakerQuote("Bet365", line, 5.0, 5.0, "Points O/U")}


class TestEstimateLine:
    """Tests for estimating a line from recent games."""

    def test_rounds_to_half_point(self):
        assert estimate_line(build_dataset([24, 25] * 5), "points") == 24.5
        assert estimate_line(build_dataset([24, 24, 24, 24, 25]), "points") == 24.0

    def test_halves_round_up(self):
        """Test quarter points round up to the next half point."""
        # 24.25 sits exactly between 24.0 and 24.5
        assert estimate_line(build_dataset([24, 24, 24, 25]), "points") == 24.5

    def test_only_last_ten_games(self):
        """Test only the ten most recent games are averaged."""
        assert estimate_line(build_dataset([30] * 10 + [0] * 10), "points") == 30.0

    def test_no_games(self):
        assert estimate_line(PlayerDataset(player_id=1, name="Nobody"), "points") is None


class TestScanPlayer:
    """Tests for scanning one player's props."""

    def test_bet_event_shape(self, calculator, stored_player):
        """Test a value side becomes a bet event with display fields."""
        client = MockOddsClient(
            odds_data={"id": EVENT_ID},
            quotes={("LeBron James", "points"): _generous_quotes(28.0)},
        )

        events = list(scan_player(stored_player, NEXT_MATCH, calculator, client))

        assert events
        bet = events[0]["data"]
        assert events[0]["type"] == "bet"
        assert bet["player"] == "LeBron James"
        assert bet["team"] == TEAM_NAME
        assert bet["opponent"] == "Denver Nuggets"
        assert bet["is_home"] is False
        assert bet["stat_type"] == "POINTS"
        assert bet["bookmaker"] == "Bet365"
        assert bet["odds"] == 5.0
        assert bet["implied_probability"] == "20.0%"
        assert bet["ev_raw"] > 0.05
        assert bet["bet"] in ("OVER", "UNDER")

    def test_failing_stat_is_skipped(self, calculator, stored_player):
        """Test an odds failure for one stat leaves the others."""
        class FlakyOddsClient(MockOddsClient):
            def extract_player_quotes(self, odds_data, player_name, stat_type):
                if stat_type == "rebounds":
                    raise DataFetchError("odds_api", "market parse failed")
                return super().extract_player_quotes(odds_data, player_name, stat_type)

        client = FlakyOddsClient(
            odds_data={"id": EVENT_ID},
            quotes={
                ("LeBron James", "points"): _generous_quotes(28.0),
                ("LeBron James", "assists"): _generous_quotes(4.5),
            },
        )

        events = list(scan_player(stored_player, NEXT_MATCH, calculator, client))

        assert {event["data"]["stat_type"] for event in events} == {"POINTS", "ASSISTS"}

    def test_suspended_quote_keeps_the_stat(self, calculator, stored_player):
        """Test a zero-priced bookmaker is skipped without dropping the stat."""
        quotes = _generous_quotes(28.0)
        quotes["Kambi"] = BookmakerQuote("Kambi", 28.0, 5.0, 0.0, "Points O/U")
        client = MockOddsClient(odds_data={"id": EVENT_ID}, quotes={("LeBron James", "points"): quotes})

        events = list(scan_player(stored_player, NEXT_MATCH, calculator, client))

        assert events
        assert {event["data"]["bookmaker"] for event in events} == {"Bet365"}

    def test_no_odds(self, calculator, stored_player):
        assert list(scan_player(stored_player, NEXT_MATCH, calculator, MockOddsClient())) == []


class TestScanValueBets:
    """Tests for the value bet event stream."""

    def test_stream_ends_with_complete(self, calculator, player_store, stored_player):
        """Test bets and progress are followed by complete."""
        limiter = StubLimiter()
        client = MockOddsClient(
            next_matches={TEAM_NAME: NEXT_MATCH},
            odds_data={"id": EVENT_ID},
            quotes={("LeBron James", "points"): _generous_quotes(28.0)},
        )

        events = list(scan_value_bets(player_store, calculator, client, rate_limiter=limiter, delay=0.0))

        assert events[-1] == {"type": "complete"}
        assert events[-2] == {"type": "progress", "processed": 1, "total": 1, "player": "LeBron James"}
        assert any(event["type"] == "bet" for event in events)
        assert limiter.calls == [("value_scan", 0.0)]

    def test_player_without_match_is_not_counted(self, calculator, player_store, stored_player):
        """Test a player with no upcoming match gets no progress event."""
        client = MockOddsClient()

        events = list(scan_value_bets(player_store, calculator, client, rate_limiter=StubLimiter()))

        assert events == [{"type": "complete"}]
        assert client.calls == [("get_next_match", TEAM_NAME)]

    def test_player_without_team_is_skipped(self, calculator, player_store):
        player_store.save(PlayerDataset(player_id=7, name="Free Agent"))
        limiter = StubLimiter()

        events = list(scan_value_bets(player_store, calculator, MockOddsClient(), rate_limiter=limiter))

        # Only the stored player with a team is looked up
        assert events == [{"type": "complete"}]
        assert limiter.calls == [("value_scan", None)]

    def test_store_failure_becomes_error_event(self, calculator):
        """Test a store failure ends the stream with an error event."""
        class BrokenStore:
            def list_players(self):
                raise OSError("disk unavailable")

        events = list(scan_value_bets(BrokenStore(), calculator, MockOddsClient(), rate_limiter=StubLimiter()))

        assert events == [{"type": "error", "message": "disk unavailable"}]

    @pytest.mark.parametrize("min_ev", [0.05, 10.0])
    def test_min_ev_filters(self, calculator, player_store, stored_player, min_ev):
        """Test bets are filtered by the EV threshold."""
        client = MockOddsClient(
            next_matches={TEAM_NAME: NEXT_MATCH},
            odds_data={"id": EVENT_ID},
            quotes={("LeBron James", "points"): _generous_quotes(28.0)},
        )

        events = list(scan_value_bets(player_store, calculator, client, min_ev=min_ev, rate_limiter=StubLimiter()))
        bets = [event for event in events if event["type"] == "bet"]

        assert all(bet["data"]["ev_raw"] > min_ev for bet in bets)
        assert bool(bets) is (min_ev < 1)
