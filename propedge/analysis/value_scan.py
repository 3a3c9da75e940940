"""
Scan every stored player for positive-EV props in their next game.

scan_value_bets() is a generator of plain dict events so it can back both
the server-sent event stream and the CLI:

    {"type": "bet", "data": {...}}
    {"type": "progress", "processed": 3, "total": 40, "player": "..."}
    {"type": "complete"}
    {"type": "error", "message": "..."}
"""

from typing import Any, Dict, Iterator, Optional
import logging
import math

from propedge.analysis.odds_reconciliation import evaluate_quote
from propedge.constants import BET_OVER, BET_UNDER, MIN_EV, SCAN_LINE_GAMES, SCAN_STAT_TYPES
from propedge.models.context import GameContext
from propedge.models.records import PlayerDataset
from propedge.ops.rate_limiter import RateLimiter, get_rate_limiter
from propedge.utils.odds import format_pct

logger = logging.getLogger(__name__)

_SCAN_SOURCE = "value_scan"


def estimate_line(dataset: PlayerDataset, stat_type: str, games: int = SCAN_LINE_GAMES) -> Optional[float]:
    """Mean of the last ``games`` games, rounded half up to the nearest 0.5."""
    values = [g.stat(stat_type) for g in dataset.recent_games(games)]
    values = [v for v in values if v is not None]
    if not values:
        return None
    average = sum(values) / len(values)
    return math.floor(average * 2 + 0.5) / 2


def _bet_event(dataset, next_match, stat_type, side, quote, ev, our_probability, projection) -> Dict[str, Any]:
    odds = quote.over_odds if side == BET_OVER else quote.under_odds
    return {
        "type": "bet",
        "data": {
            "player": dataset.name,
            "team": dataset.latest_team,
            "opponent": next_match.get("opponent"),
            "is_home": next_match.get("isHome"),
            "match_date": next_match.get("date"),
            "stat_type": stat_type.upper(),
            "bet": side,
            "line": quote.line,
            "odds": odds,
            "bookmaker": quote.bookmaker,
            "ev": format_pct(ev, 2),
            "ev_raw": ev,
            "our_probability": format_pct(our_probability),
            "implied_probability": format_pct(1 / odds),
            "projection": f"{projection:.1f}",
        },
    }


def scan_player(
    dataset: PlayerDataset,
    next_match: Dict[str, Any],
    calculator,
    odds_client,
    min_ev: float = MIN_EV,
) -> Iterator[Dict[str, Any]]:
    """Bet events for one player; a failing stat type is logged and skipped."""
    for stat_type in SCAN_STAT_TYPES:
        try:
            line = estimate_line(dataset, stat_type)
            if line is None:
                continue

            prediction = calculator.calculate_probability(
                dataset.name,
                stat_type,
                line,
                GameContext(is_home=next_match.get("isHome")),
            )

            odds_data = odds_client.get_event_odds(next_match.get("id"))
            if not odds_data:
                continue
            quotes = odds_client.extract_player_quotes(odds_data, dataset.name, stat_type)
            if not quotes:
                continue

            over = prediction.probability.over
            under = prediction.probability.under
            for quote in quotes.values():
                if not quote.is_priced:
                    continue
                value = evaluate_quote(over, under, quote)
                if value.over_ev > min_ev:
                    yield _bet_event(dataset, next_match, stat_type, BET_OVER, quote, value.over_ev, over,
                                     prediction.projection)
                if value.under_ev > min_ev:
                    yield _bet_event(dataset, next_match, stat_type, BET_UNDER, quote, value.under_ev, under,
                                     prediction.projection)
        except Exception as exc:
            logger.error("Error analyzing %s %s: %s", dataset.name, stat_type, exc)


def scan_value_bets(
    store,
    calculator,
    odds_client,
    min_ev: float = MIN_EV,
    rate_limiter: Optional[RateLimiter] = None,
    delay: Optional[float] = None,
) -> Iterator[Dict[str, Any]]:
    limiter = rate_limiter or get_rate_limiter()
    logger.info("Scanning for value bets with min EV: %s", format_pct(min_ev, 0))

    try:
        players = store.list_players()
        logger.info("Found %d players to analyze", len(players))
        processed = 0

        for dataset in players:
            team = dataset.latest_team
            if not team:
                continue

            limiter.wait(_SCAN_SOURCE, delay)
            next_match = odds_client.get_next_match(team)
            if not next_match:
                logger.debug("%s: No upcoming match", dataset.name)
                continue
            logger.debug("%s (%s): Next match vs %s", dataset.name, team, next_match.get("opponent"))

            for event in scan_player(dataset, next_match, calculator, odds_client, min_ev):
                yield event

            processed += 1
            yield {
                "type": "progress",
                "processed": processed,
                "total": len(players),
                "player": dataset.name,
            }

        yield {"type": "complete"}
        logger.info("Scan complete - processed %d players", processed)
    except Exception as exc:
        logger.exception("Value bets scan failed")
        yield {"type": "error", "message": str(exc)}
