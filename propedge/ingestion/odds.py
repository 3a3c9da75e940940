"""odds-api.io (v3) fixtures and player prop prices.

Lookups degrade instead of raising: a failed request is logged and comes
back as an empty list or None so a scan over many players keeps going.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo
import logging

import requests

from propedge.constants import DEFAULT_BOOKMAKERS, MARKET_NAMES, NBA_LEAGUE_SLUG
from propedge.exceptions import DataFetchError, OddsAPIError, RateLimitError
from propedge.models.quotes import BookmakerQuote
from propedge.models.records import parse_game_date

logger = logging.getLogger(__name__)

SOURCE_NAME = "odds_api"
DISPLAY_TZ = ZoneInfo("America/New_York")


def format_match_date(value: Any) -> str:
    """'2025-01-06T00:30:00Z' -> 'Jan 5, 07:30 PM' (Eastern time)."""
    local = parse_game_date(value).astimezone(DISPLAY_TZ)
    return f"{local:%b} {local.day}, {local:%I:%M %p}"


def label_matches_player(label: Optional[str], player_name: str) -> bool:
    """Every part of the name must appear in the label text before its first '('."""
    if not label:
        return False
    extracted = label.split("(", 1)[0].strip().lower()
    if not extracted:
        return False
    parts = [part for part in player_name.lower().split(" ") if part]
    return all(part in extracted for part in parts)


class OddsClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.odds-api.io/v3",
        bookmakers: Optional[List[str]] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.bookmakers = list(bookmakers or DEFAULT_BOOKMAKERS)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _make_request(self, endpoint: str, params: dict = None) -> Any:
        """
        Raises:
            OddsAPIError: missing key, error status or undecodable body
            RateLimitError: HTTP 429
        """
        if not self.api_key:
            raise OddsAPIError("API key required (ODDS_API_KEY)")

        params = dict(params or {})
        params["apiKey"] = self.api_key
        url = f"{self.base_url}/{endpoint}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise OddsAPIError(f"{endpoint}: request failed", original_error=e)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(SOURCE_NAME, retry_after=int(retry_after) if retry_after else None)
        if response.status_code >= 400:
            raise OddsAPIError(f"{endpoint}: request rejected", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise OddsAPIError(f"{endpoint}: invalid JSON", original_error=e)

    def search_team_matches(self, team_name: str) -> List[dict]:
        """Pending NBA matches for a team that start in the future, soonest first."""
        logger.info("Fetching matches for: %s", team_name)
        try:
            matches = self._make_request("events/search", {"query": team_name})
        except DataFetchError as exc:
            logger.error("Error fetching team matches: %s", exc)
            return []
        if not isinstance(matches, list):
            return []

        now = self._clock()
        upcoming = [
            match
            for match in matches
            if match.get("status") == "pending"
            and (match.get("league") or {}).get("slug") == NBA_LEAGUE_SLUG
            and parse_game_date(match.get("date")) > now
        ]
        return sorted(upcoming, key=lambda match: parse_game_date(match.get("date")))

    def get_next_match(self, team_name: str) -> Optional[Dict[str, Any]]:
        matches = self.search_team_matches(team_name)
        if not matches:
            return None

        match = matches[0]
        home = match.get("home") or ""
        away = match.get("away") or ""
        is_home = team_name.lower() in home.lower()
        return {
            "id": match.get("id"),
            "opponent": away if is_home else home,
            "isHome": is_home,
            "date": match.get("date"),
            "homeTeam": home,
            "awayTeam": away,
        }

    def get_event_odds(self, event_id: Any) -> Optional[Dict[str, Any]]:
        logger.info("Fetching odds for event: %s from %s", event_id, ", ".join(self.bookmakers))
        try:
            odds_data = self._make_request(
                "odds",
                {"eventId": event_id, "bookmakers": ",".join(self.bookmakers)},
            )
        except DataFetchError as exc:
            logger.error("Error fetching event odds: %s", exc)
            return None
        if not isinstance(odds_data, dict):
            return None
        logger.debug("Received odds with bookmakers: %s", list((odds_data.get("bookmakers") or {}).keys()))
        return odds_data

    def find_player_prop(
        self,
        odds_data: Optional[Dict[str, Any]],
        player_name: str,
        stat_type: str,
        bookmaker: str,
    ) -> Optional[BookmakerQuote]:
        """One bookmaker's over/under quote for the player, None when absent."""
        markets = ((odds_data or {}).get("bookmakers") or {}).get(bookmaker)
        if not markets:
            logger.debug("%s not available in odds data", bookmaker)
            return None

        market_name = MARKET_NAMES.get(stat_type)
        if not market_name:
            return None
        market = next((m for m in markets if m.get("name") == market_name), None)
        if not market or not market.get("odds"):
            logger.debug("%s: Market %r not found", bookmaker, market_name)
            return None

        entry = next((o for o in market["odds"] if label_matches_player(o.get("label"), player_name)), None)
        if entry is None:
            logger.debug("%s: No match found for %r in %s", bookmaker, player_name, market_name)
            return None

        try:
            over_odds = float(entry.get("over"))
            under_odds = float(entry.get("under"))
        except (TypeError, ValueError):
            logger.warning("%s: Unreadable prices for %r: %s", bookmaker, player_name, entry)
            return None

        quote = BookmakerQuote(
            bookmaker=bookmaker,
            line=entry.get("hdp"),
            over_odds=over_odds,
            under_odds=under_odds,
            market_name=market.get("name", market_name),
            updated_at=market.get("updatedAt"),
        )
        if not quote.is_priced:
            logger.warning("%s: Suspended or invalid prices for %r: %s", bookmaker, player_name, entry)
            return None
        return quote

    def extract_player_quotes(
        self,
        odds_data: Optional[Dict[str, Any]],
        player_name: str,
        stat_type: str,
    ) -> Optional[Dict[str, BookmakerQuote]]:
        """Quotes keyed by bookmaker in configured order; None when nobody prices the player."""
        quotes: Dict[str, BookmakerQuote] = {}
        for bookmaker in self.bookmakers:
            quote = self.find_player_prop(odds_data, player_name, stat_type, bookmaker)
            if quote is not None:
                quotes[bookmaker] = quote
        return quotes or None
