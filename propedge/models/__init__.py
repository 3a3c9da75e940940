"""Player and game data model."""

from propedge.models.context import GameContext
from propedge.models.quotes import BookmakerQuote
from propedge.models.records import (
    GameRecord,
    SeasonRecord,
    PlayerDataset,
    filter_games,
    parse_game_date,
    sort_games,
)

__all__ = [
    "BookmakerQuote",
    "GameContext",
    "GameRecord",
    "SeasonRecord",
    "PlayerDataset",
    "filter_games",
    "parse_game_date",
    "sort_games",
]
