"""Build and store a PlayerDataset from the stats provider."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from propedge.constants import DEFAULT_SEASONS, NBA_LEAGUE_ID, TEAM_SEARCH_LIMIT
from propedge.exceptions import DataFetchError, PlayerNotFoundError, TeamNotFoundError
from propedge.models.records import GameRecord, PlayerDataset, SeasonRecord, to_int

logger = logging.getLogger(__name__)


def parse_minutes(value: Any) -> float:
    """'32:45' -> 32.75; anything unparseable is 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    parts = str(value).split(":")
    if len(parts) != 2:
        return 0.0
    return to_int(parts[0]) + to_int(parts[1]) / 60


def opponent_name(stat: Dict[str, Any]) -> str:
    game = stat.get("game") or {}
    team = stat.get("team") or {}
    teams = game.get("teams") or {}
    home = teams.get("home") or {}
    away = teams.get("away") or {}
    if team.get("id") == home.get("id"):
        return away.get("name") or "Unknown"
    return home.get("name") or "Unknown"


def parse_player_stats(rows: List[Dict[str, Any]]) -> List[GameRecord]:
    """Normalize api-sports box score rows into GameRecords."""
    games: List[GameRecord] = []
    for stat in rows:
        game = stat.get("game") or {}
        team = stat.get("team") or {}
        home_team = ((game.get("teams") or {}).get("home") or {})
        field_goals = stat.get("field_goals") or {}
        free_throws = stat.get("freethrows_goals") or {}
        threes = stat.get("threepoint_goals") or {}
        games.append(
            GameRecord(
                game_id=game.get("id"),
                date=game.get("date") or "",
                opponent=opponent_name(stat),
                is_home=team.get("id") is not None and team.get("id") == home_team.get("id"),
                minutes=parse_minutes(stat.get("minutes")),
                points=to_int(stat.get("points")),
                rebounds=to_int((stat.get("rebounds") or {}).get("total")),
                assists=to_int(stat.get("assists")),
                fgm=to_int(field_goals.get("total")),
                fga=to_int(field_goals.get("attempts")),
                ftm=to_int(free_throws.get("total")),
                fta=to_int(free_throws.get("attempts")),
                tpm=to_int(threes.get("total")),
                tpa=to_int(threes.get("attempts")),
            )
        )
    return games


class DataCollector:
    def __init__(self, client, store, league_id: int = NBA_LEAGUE_ID) -> None:
        self.client = client
        self.store = store
        self.league_id = league_id

    def _find_team(self, team_name: str, season: str) -> Dict[str, Any]:
        teams = self.client.get_teams(season, self.league_id)
        needle = team_name.lower()
        for team in teams:
            if needle in (team.get("name") or "").lower():
                return team
        raise TeamNotFoundError(team_name, season)

    def _search_teams_for_player(self, player_id: Any, season: str) -> Optional[Dict[str, Any]]:
        """First of the season's leading teams whose opening game lists the player."""
        teams = self.client.get_teams(season, self.league_id)
        for team in teams[:TEAM_SEARCH_LIMIT]:
            try:
                team_games = self.client.get_games(team.get("id"), season, self.league_id)
                if not team_games:
                    continue
                box_score = self.client.get_game_player_stats(team_games[0].get("id"))
            except DataFetchError as exc:
                logger.debug("Team search in %s failed: %s", team.get("name"), exc)
                continue
            if any((entry.get("player") or {}).get("id") == player_id for entry in box_score):
                logger.info("Found player on team: %s", team.get("name"))
                return team
        return None

    def collect_player_dataset(
        self,
        player_name: str,
        seasons: Optional[List[str]] = None,
        team_name: Optional[str] = None,
    ) -> PlayerDataset:
        """
        Collect every requested season for a player and save it.

        With ``team_name`` the team is matched once against the first season's
        team list and used for all seasons. Without it, the first few teams of
        each season are searched for the player.

        Raises:
            PlayerNotFoundError: search returns nothing or no season has games
            TeamNotFoundError: ``team_name`` matches no team
        """
        seasons = list(seasons or DEFAULT_SEASONS)
        logger.info("Collecting data for %s (%s)", player_name, ", ".join(seasons))

        results = self.client.search_player(player_name)
        if not results:
            raise PlayerNotFoundError(player_name, "no search results")
        player = results[0]
        player_id = player.get("id")
        logger.info("Found: %s (ID: %s)", player.get("name"), player_id)

        fixed_team = self._find_team(team_name, seasons[0]) if team_name else None

        season_records: List[SeasonRecord] = []
        for season in seasons:
            try:
                team = fixed_team or self._search_teams_for_player(player_id, season)
                if team is None:
                    logger.info("No data for %s (player not found on checked teams)", season)
                    continue
                rows = self.client.get_player_game_logs(player_id, team.get("id"), season, self.league_id)
            except DataFetchError as exc:
                logger.warning("Error fetching %s: %s", season, exc)
                continue

            if not rows:
                logger.info("No games for %s in %s", player.get("name"), season)
                continue
            season_records.append(
                SeasonRecord(season=season, team=team.get("name") or "Unknown", games=parse_player_stats(rows))
            )
            logger.info("Found %d games in %s", len(rows), season)

        if not season_records:
            raise PlayerNotFoundError(player_name, "no historical data found for player")

        dataset = PlayerDataset(
            player_id=player_id,
            name=player.get("name") or player_name,
            seasons=season_records,
            last_updated=datetime.now(timezone.utc).isoformat(),
        )
        self.store.save(dataset)
        return dataset
