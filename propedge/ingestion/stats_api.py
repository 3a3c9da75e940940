"""api-sports basketball (v1) client.

Raw JSON responses are cached per endpoint and parameter set; player
searches always go to the network.
"""

from typing import Any, Dict, List, Optional
import logging

import requests

from propedge.constants import NBA_LEAGUE_ID
from propedge.exceptions import ConfigurationError, DataFetchError, RateLimitError
from propedge.storage.cache import CacheStore, make_cache_key

logger = logging.getLogger(__name__)

SOURCE_NAME = "api_sports"
API_HOST = "v1.basketball.api-sports.io"


class StatsAPIClient:
    """
    Client for the api-sports basketball API (https://api-sports.io/).

    Every public method returns the ``response`` list of the payload.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = f"https://{API_HOST}",
        cache: Optional[CacheStore] = None,
        cache_ttl_seconds: int = 24 * 3600,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.timeout = timeout
        self.session = session or requests.Session()

    def _make_request(self, endpoint: str, params: dict = None, use_cache: bool = True) -> dict:
        """Make API request with caching and error handling.

        Raises:
            ConfigurationError: If API key is missing
            RateLimitError: If rate limit exceeded (429)
            DataFetchError: For network failures, error statuses and API-level errors
        """
        if not self.api_key:
            raise ConfigurationError("API_SPORTS_KEY", "API key required for api-sports requests")

        params = dict(params or {})
        cache_key = make_cache_key(endpoint, params)
        if use_cache and self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        url = f"{self.base_url}/{endpoint}"
        headers = {
            "x-rapidapi-key": self.api_key,
            "x-rapidapi-host": API_HOST,
        }

        logger.info("API request: %s %s", endpoint, params)
        try:
            response = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise DataFetchError(SOURCE_NAME, f"{endpoint}: request timeout", original_error=e)
        except requests.exceptions.RequestException as e:
            raise DataFetchError(SOURCE_NAME, f"{endpoint}: request failed", original_error=e)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(SOURCE_NAME, retry_after=int(retry_after) if retry_after else None)
        if response.status_code >= 400:
            raise DataFetchError(SOURCE_NAME, f"{endpoint}: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DataFetchError(SOURCE_NAME, f"{endpoint}: invalid JSON", original_error=e)

        # api-sports reports auth and quota problems in the body with a 200
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            logger.error("API Error (%s): %s", endpoint, errors)
            raise DataFetchError(SOURCE_NAME, f"{endpoint}: {errors}")

        if use_cache and self.cache is not None:
            self.cache.set(cache_key, data, self.cache_ttl_seconds)
        return data

    def search_player(self, player_name: str) -> List[dict]:
        data = self._make_request("players", {"search": player_name}, use_cache=False)
        return data.get("response") or []

    def get_teams(self, season: str, league_id: int = NBA_LEAGUE_ID) -> List[dict]:
        data = self._make_request("teams", {"league": league_id, "season": season})
        return data.get("response") or []

    def get_games(self, team_id: Any, season: str, league_id: int = NBA_LEAGUE_ID) -> List[dict]:
        data = self._make_request("games", {"team": team_id, "league": league_id, "season": season})
        return data.get("response") or []

    def get_game_player_stats(self, game_id: Any) -> List[dict]:
        data = self._make_request("games/statistics/players", {"id": game_id})
        return data.get("response") or []

    def get_player_game_logs(
        self,
        player_id: Any,
        team_id: Any,
        season: str,
        league_id: int = NBA_LEAGUE_ID,
    ) -> List[dict]:
        """
        Per-game stat rows for one player across a team's season.

        Fetches the team schedule, then each game's box score, keeping the
        rows for ``player_id`` merged with the schedule's game info. Games
        without stats (future, cancelled) are skipped.
        """
        games = self.get_games(team_id, season, league_id)
        if not games:
            return []

        logger.info("Found %d team games, fetching player stats...", len(games))
        logs: List[dict] = []
        for game in games:
            try:
                box_score = self.get_game_player_stats(game.get("id"))
            except DataFetchError as exc:
                logger.debug("Skipping game %s: %s", game.get("id"), exc)
                continue

            row = next(
                (entry for entry in box_score if (entry.get("player") or {}).get("id") == player_id),
                None,
            )
            if row is None:
                continue
            merged = dict(row)
            merged["game"] = {**game, **(row.get("game") or {})}
            logs.append(merged)

        logger.info("Retrieved stats for %d games where player participated", len(logs))
        return logs
