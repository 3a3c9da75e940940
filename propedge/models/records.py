"""
Normalized game logs and the per-player dataset.

A PlayerDataset is stored as one JSON document per player:

    {
        "player": {"id": 265, "name": "LeBron James", "firstname": ..., "lastname": ...},
        "seasons": [{"season": "2024-2025", "team": "Los Angeles Lakers", "games": [...]}],
        "lastUpdated": "2025-01-03T18:22:05+00:00"
    }

Combination stats (pra, points_assists, ...) are always recomputed from the
base counts when a record is read, so stale values on disk never leak into
analysis.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from propedge.constants import COMBINED_STATS


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_game_date(value: Any) -> datetime:
    """Parse an ISO timestamp into an aware datetime (epoch when unparseable)."""
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return _EPOCH
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class GameRecord:
    """One played game for one player."""

    game_id: Any
    date: str
    opponent: str = "Unknown"
    is_home: bool = False
    minutes: float = 0.0
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    fgm: int = 0
    fga: int = 0
    ftm: int = 0
    fta: int = 0
    tpm: int = 0
    tpa: int = 0

    @property
    def pra(self) -> int:
        return self.points + self.rebounds + self.assists

    @property
    def points_assists(self) -> int:
        return self.points + self.assists

    @property
    def points_rebounds(self) -> int:
        return self.points + self.rebounds

    @property
    def rebounds_assists(self) -> int:
        return self.rebounds + self.assists

    @property
    def played_at(self) -> datetime:
        return parse_game_date(self.date)

    def stat(self, stat_type: str) -> Optional[float]:
        """Value of a base or combined stat, None when the field is unknown."""
        if stat_type in COMBINED_STATS or stat_type in ("points", "rebounds", "assists", "minutes"):
            return getattr(self, stat_type)
        value = getattr(self, stat_type, None)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameRecord":
        return cls(
            game_id=data.get("gameId", data.get("game_id")),
            date=data.get("date") or "",
            opponent=data.get("opponent") or "Unknown",
            is_home=bool(data.get("home", data.get("is_home", False))),
            minutes=to_float(data.get("minutes")),
            points=to_int(data.get("points")),
            rebounds=to_int(data.get("rebounds")),
            assists=to_int(data.get("assists")),
            fgm=to_int(data.get("fgm")),
            fga=to_int(data.get("fga")),
            ftm=to_int(data.get("ftm")),
            fta=to_int(data.get("fta")),
            tpm=to_int(data.get("tpm")),
            tpa=to_int(data.get("tpa")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "date": self.date,
            "opponent": self.opponent,
            "home": self.is_home,
            "minutes": self.minutes,
            "points": self.points,
            "rebounds": self.rebounds,
            "assists": self.assists,
            "pra": self.pra,
            "points_assists": self.points_assists,
            "points_rebounds": self.points_rebounds,
            "rebounds_assists": self.rebounds_assists,
            "fgm": self.fgm,
            "fga": self.fga,
            "ftm": self.ftm,
            "fta": self.fta,
            "tpm": self.tpm,
            "tpa": self.tpa,
        }


@dataclass
class SeasonRecord:
    season: str
    team: str
    games: List[GameRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeasonRecord":
        return cls(
            season=str(data.get("season", "")),
            team=data.get("team") or "Unknown",
            games=[GameRecord.from_dict(game) for game in data.get("games", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "team": self.team,
            "games": [game.to_dict() for game in self.games],
        }


@dataclass
class PlayerDataset:
    """A player's identity plus every collected season."""

    player_id: Any
    name: str
    seasons: List[SeasonRecord] = field(default_factory=list)
    last_updated: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def latest_team(self) -> Optional[str]:
        if not self.seasons:
            return None
        return self.seasons[-1].team

    def all_games(self) -> List[GameRecord]:
        """Every game across seasons, most recent first."""
        games: List[GameRecord] = []
        for season in self.seasons:
            games.extend(season.games)
        return sort_games(games)

    def recent_games(self, count: int = 10) -> List[GameRecord]:
        return self.all_games()[:count]

    def matches_name(self, name: str) -> bool:
        return (name or "").strip().lower() in (self.name or "").lower()

    def to_frame(self) -> pd.DataFrame:
        """Game log as a DataFrame, newest first, with season and team columns."""
        rows = []
        for season in self.seasons:
            for game in season.games:
                row = game.to_dict()
                row["season"] = season.season
                row["team"] = season.team
                row["played_at"] = game.played_at
                rows.append(row)
        if not rows:
            return pd.DataFrame()
        frame = pd.DataFrame(rows)
        return frame.sort_values("played_at", ascending=False).reset_index(drop=True)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.player_id,
            "name": self.name,
            "team": self.latest_team,
            "seasons": [season.season for season in self.seasons],
            "totalGames": sum(len(season.games) for season in self.seasons),
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerDataset":
        player = data.get("player") or {}
        return cls(
            player_id=player.get("id"),
            name=player.get("name") or "",
            seasons=[SeasonRecord.from_dict(season) for season in data.get("seasons", [])],
            last_updated=data.get("lastUpdated") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        name_parts = (self.name or "").split(" ")
        return {
            "player": {
                "id": self.player_id,
                "name": self.name,
                "firstname": name_parts[0] if name_parts else "",
                "lastname": " ".join(name_parts[1:]),
            },
            "seasons": [season.to_dict() for season in self.seasons],
            "lastUpdated": self.last_updated,
        }


def sort_games(games: Iterable[GameRecord], newest_first: bool = True) -> List[GameRecord]:
    return sorted(games, key=lambda game: game.played_at, reverse=newest_first)


def filter_games(
    games: Iterable[GameRecord],
    min_minutes: Optional[float] = None,
    is_home: Optional[bool] = None,
    opponent: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[GameRecord]:
    """Filter a game list, preserving its order."""
    filtered = list(games)
    if is_home is not None:
        filtered = [g for g in filtered if g.is_home == is_home]
    if min_minutes is not None:
        filtered = [g for g in filtered if g.minutes >= min_minutes]
    if opponent:
        needle = opponent.lower()
        filtered = [g for g in filtered if needle in (g.opponent or "").lower()]
    if date_from:
        start = parse_game_date(date_from)
        filtered = [g for g in filtered if g.played_at >= start]
    if date_to:
        end = parse_game_date(date_to)
        filtered = [g for g in filtered if g.played_at <= end]
    return filtered
