"""Request bodies for the HTTP API.

Clients send camelCase field names; snake_case is accepted as well.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from propedge.constants import STAT_TYPES, is_supported_stat, normalize_stat_key
from propedge.models.context import GameContext


class APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GameContextIn(APIModel):
    is_home: Optional[bool] = Field(None, alias="isHome")
    opponent: Optional[str] = None
    expected_minutes: Optional[float] = Field(None, alias="expectedMinutes", ge=0)

    def to_context(self) -> GameContext:
        return GameContext(
            is_home=self.is_home,
            opponent=self.opponent,
            expected_minutes=self.expected_minutes,
        )


def _context(game_context: Optional[GameContextIn]) -> GameContext:
    return game_context.to_context() if game_context is not None else GameContext()


class PlayerRequest(APIModel):
    player_name: str = Field(alias="playerName")
    game_context: Optional[GameContextIn] = Field(None, alias="gameContext")

    @field_validator("player_name")
    @classmethod
    def _player_name_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("playerName is required")
        return value

    def context(self) -> GameContext:
        return _context(self.game_context)


class PredictRequest(PlayerRequest):
    stat_type: str = Field(alias="statType")
    line: float = Field(ge=0)

    @field_validator("stat_type")
    @classmethod
    def _stat_type_supported(cls, value: str) -> str:
        if not is_supported_stat(value):
            raise ValueError(f"statType must be one of: {', '.join(STAT_TYPES)}")
        return normalize_stat_key(value)


class PredictWithOddsRequest(PredictRequest):
    event_id: Optional[Union[StrictStr, int]] = Field(None, alias="eventId")

    @field_validator("event_id")
    @classmethod
    def _event_id_text(cls, value: Optional[Union[str, int]]) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class EdgeRequest(PredictRequest):
    bookmaker_odds: int = Field(alias="bookmakerOdds")

    @field_validator("bookmaker_odds")
    @classmethod
    def _odds_not_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("bookmakerOdds must be a non-zero American price")
        return value


class AnalyzeRequest(PlayerRequest):
    lines: Dict[str, float]

    @field_validator("lines")
    @classmethod
    def _lines_present(cls, value: Dict[str, float]) -> Dict[str, float]:
        if not value:
            raise ValueError("lines must contain at least one stat type")
        return value


class CollectRequest(APIModel):
    player_name: str = Field(alias="playerName")
    team_name: str = Field(alias="teamName")
    seasons: Optional[List[StrictStr]] = None

    @field_validator("player_name", "team_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value
