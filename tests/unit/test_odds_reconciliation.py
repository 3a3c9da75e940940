"""Unit tests for bookmaker EV reconciliation."""

import pytest

from propedge.analysis.odds_reconciliation import (
    OddsAvailable,
    evaluate_quote,
    odds_unavailable,
    reconcile_odds,
)
from propedge.models.quotes import BookmakerQuote


def _quote(bookmaker, over, under, line=25.5):
    return BookmakerQuote(
        bookmaker=bookmaker,
        line=line,
        over_odds=over,
        under_odds=under,
        market_name="Points O/U",
        updated_at="2025-03-02T11:58:00Z",
    )


class TestEvaluateQuote:
    """Tests for pricing a single bookmaker quote."""

    def test_ev_and_implied(self):
        """Test implied probability and EV for both sides."""
        value = evaluate_quote(0.6, 0.4, _quote("Bet365", 1.9, 1.9))

        assert value.implied_over == pytest.approx(0.5263, abs=1e-4)
        assert value.over_ev == pytest.approx(0.14)
        assert value.under_ev == pytest.approx(-0.24)

    def test_to_dict(self):
        data = evaluate_quote(0.6, 0.4, _quote("Bet365", 1.9, 1.9)).to_dict()

        assert data["implied_over_prob"] == "52.63%"
        assert data["over_ev"] == "14.00%"
        assert data["under_ev"] == "-24.00%"
        assert data["over_ev_raw"] == pytest.approx(0.14)
        assert data["market_name"] == "Points O/U"


class TestReconcileOdds:
    """Tests for picking the best-value side across bookmakers."""

    def test_best_over_bookmaker(self):
        """Test the bookmaker with the highest over EV wins."""
        quotes = {"Bet365": _quote("Bet365", 1.9, 1.9), "Kambi": _quote("Kambi", 2.10, 1.75)}

        result = reconcile_odds(0.6, 0.4, quotes)

        assert result.recommendation == "OVER"
        assert result.best_bookmaker == "Kambi"
        assert result.best_ev == pytest.approx(0.26)
        assert set(result.bookmakers) == {"Bet365", "Kambi"}

    def test_tie_keeps_first_bookmaker(self):
        """Test equal EV keeps the bookmaker seen first."""
        quotes = {"Kambi": _quote("Kambi", 2.0, 1.8), "Bet365": _quote("Bet365", 2.0, 1.8)}

        result = reconcile_odds(0.6, 0.4, quotes)

        assert result.best_over_bookmaker == "Kambi"
        assert result.best_under_bookmaker == "Kambi"

    def test_under(self):
        result = reconcile_odds(0.3, 0.7, {"Bet365": _quote("Bet365", 1.9, 1.9)})

        assert result.recommendation == "UNDER"
        assert result.best_bookmaker == "Bet365"
        assert result.best_ev == pytest.approx(0.33)

    def test_over_must_beat_under(self):
        """Test over is only recommended when it beats under."""
        result = reconcile_odds(0.5, 0.5, {"Bet365": _quote("Bet365", 2.2, 2.4)})

        assert result.best_over_ev == pytest.approx(0.1)
        assert result.recommendation == "UNDER"

    def test_no_value(self):
        """Test nothing above the threshold gives NO VALUE."""
        result = reconcile_odds(0.5, 0.5, {"Bet365": _quote("Bet365", 1.9, 1.9)})

        assert result.recommendation == "NO VALUE"
        data = result.to_dict()
        assert data["best_value"]["bet"] is None
        assert data["best_value"]["bookmaker"] is None

    def test_custom_threshold(self):
        quotes = {"Bet365": _quote("Bet365", 1.9, 1.9)}

        assert reconcile_odds(0.6, 0.4, quotes, min_ev=0.2).recommendation == "NO VALUE"

    def test_no_quotes(self):
        """Test an empty quote set reports no best EV."""
        result = reconcile_odds(0.6, 0.4, {})

        assert result.recommendation == "NO VALUE"
        assert result.best_ev is None
        assert result.to_dict()["best_value"]["ev_raw"] is None

    def test_suspended_quote_skipped(self):
        """Test a zero-priced side drops that bookmaker and prices the rest."""
        quotes = {"Bet365": _quote("Bet365", 1.9, 1.9), "Kambi": _quote("Kambi", 2.1, 0.0)}

        result = reconcile_odds(0.62, 0.38, quotes)

        assert set(result.bookmakers) == {"Bet365"}
        assert result.recommendation == "OVER"
        assert result.best_bookmaker == "Bet365"
        assert result.best_ev == pytest.approx(0.178)

    def test_every_quote_suspended(self):
        """Test nothing priced means NO VALUE rather than an error."""
        result = reconcile_odds(0.62, 0.38, {"Kambi": _quote("Kambi", 1.0, 0.0)})

        assert result.bookmakers == {}
        assert result.recommendation == "NO VALUE"

    def test_to_dict(self):
        data = reconcile_odds(0.6, 0.4, {"Kambi": _quote("Kambi", 2.10, 1.75)}).to_dict()

        assert data["available"] is True
        assert data["recommendation"] == "OVER"
        assert data["best_value"]["bookmaker"] == "Kambi"
        assert data["best_value"]["ev"] == "26.00%"
        assert data["bookmakers"]["Kambi"]["line"] == 25.5


def test_unavailable():
    result = odds_unavailable("No event ID provided")

    assert result.available is False
    assert result.to_dict() == {"available": False, "message": "No event ID provided"}
    assert OddsAvailable.available is True
