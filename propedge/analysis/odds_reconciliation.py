"""
Compare our over/under probabilities with bookmaker prices.

The result attached to a prediction is exactly one of OddsAvailable or
OddsUnavailable; the latter carries a reason string meant for display.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
import logging
import math

from propedge.constants import BET_OVER, BET_UNDER, MIN_EV, NO_VALUE
from propedge.models.quotes import BookmakerQuote
from propedge.utils.odds import calculate_ev, decimal_to_implied_prob, format_pct

logger = logging.getLogger(__name__)


@dataclass
class BookmakerValue:
    quote: BookmakerQuote
    implied_over: float
    implied_under: float
    over_ev: float
    under_ev: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.quote.line,
            "over_odds": self.quote.over_odds,
            "under_odds": self.quote.under_odds,
            "implied_over_prob": format_pct(self.implied_over, 2),
            "implied_under_prob": format_pct(self.implied_under, 2),
            "over_ev": format_pct(self.over_ev, 2),
            "under_ev": format_pct(self.under_ev, 2),
            "over_ev_raw": self.over_ev,
            "under_ev_raw": self.under_ev,
            "market_name": self.quote.market_name,
            "updated_at": self.quote.updated_at,
        }


@dataclass
class OddsAvailable:
    bookmakers: Dict[str, BookmakerValue] = field(default_factory=dict)
    best_over_bookmaker: Optional[str] = None
    best_over_ev: float = float("-inf")
    best_under_bookmaker: Optional[str] = None
    best_under_ev: float = float("-inf")
    recommendation: str = NO_VALUE

    available = True

    @property
    def best_bet(self) -> Optional[str]:
        return None if self.recommendation == NO_VALUE else self.recommendation

    @property
    def best_bookmaker(self) -> Optional[str]:
        if self.recommendation == BET_OVER:
            return self.best_over_bookmaker
        if self.recommendation == BET_UNDER:
            return self.best_under_bookmaker
        return None

    @property
    def best_ev(self) -> Optional[float]:
        ev = self.best_over_ev if self.recommendation == BET_OVER else self.best_under_ev
        # -inf until at least one bookmaker has been priced
        return ev if math.isfinite(ev) else None

    def to_dict(self) -> Dict[str, Any]:
        best_ev = self.best_ev
        return {
            "available": True,
            "bookmakers": {name: value.to_dict() for name, value in self.bookmakers.items()},
            "best_value": {
                "bet": self.best_bet,
                "bookmaker": self.best_bookmaker,
                "ev": None if best_ev is None else format_pct(best_ev, 2),
                "ev_raw": best_ev,
            },
            "recommendation": self.recommendation,
        }


@dataclass
class OddsUnavailable:
    reason: str

    available = False

    def to_dict(self) -> Dict[str, Any]:
        return {"available": False, "message": self.reason}


OddsResult = Union[OddsAvailable, OddsUnavailable]


def odds_unavailable(reason: str) -> OddsUnavailable:
    return OddsUnavailable(reason=reason)


def evaluate_quote(over_probability: float, under_probability: float, quote: BookmakerQuote) -> BookmakerValue:
    return BookmakerValue(
        quote=quote,
        implied_over=decimal_to_implied_prob(quote.over_odds),
        implied_under=decimal_to_implied_prob(quote.under_odds),
        over_ev=calculate_ev(over_probability, quote.over_odds),
        under_ev=calculate_ev(under_probability, quote.under_odds),
    )


def reconcile_odds(
    raw_over: float,
    raw_under: float,
    quotes: Mapping[str, BookmakerQuote],
    min_ev: float = MIN_EV,
) -> OddsAvailable:
    """
    Price every bookmaker and pick the best-value side.

    The best over and best under bookmakers are tracked independently; on
    equal EV the bookmaker seen first keeps the spot. Over is recommended
    when its best EV clears ``min_ev`` and beats the best under EV, otherwise
    under when it clears ``min_ev``, otherwise NO VALUE. Quotes without a
    real price on both sides are skipped.
    """
    result = OddsAvailable()
    for name, quote in quotes.items():
        if not quote.is_priced:
            logger.warning("%s: skipping quote with odds %s/%s", name, quote.over_odds, quote.under_odds)
            continue
        value = evaluate_quote(raw_over, raw_under, quote)
        result.bookmakers[name] = value
        logger.debug(
            "%s - Over EV: %.2f%%, Under EV: %.2f%%",
            name,
            value.over_ev * 100,
            value.under_ev * 100,
        )
        if value.over_ev > result.best_over_ev:
            result.best_over_ev = value.over_ev
            result.best_over_bookmaker = name
        if value.under_ev > result.best_under_ev:
            result.best_under_ev = value.under_ev
            result.best_under_bookmaker = name

    if result.best_over_ev > min_ev and result.best_over_ev > result.best_under_ev:
        result.recommendation = BET_OVER
    elif result.best_under_ev > min_ev:
        result.recommendation = BET_UNDER
    return result
