"""Runtime configuration."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Dict, List
import json
import os

from propedge.constants import (
    DEFAULT_BOOKMAKERS,
    DEFAULT_MIN_GAMES,
    DEFAULT_MODEL_MAX_AGE_HOURS,
    DEFAULT_RECENT_WEIGHT,
    DEFAULT_SEASONS,
)


_DEFAULT_API_SPORTS_BASE_URL = "https://v1.basketball.api-sports.io"
_DEFAULT_ODDS_API_BASE_URL = "https://api.odds-api.io/v3"
_DEFAULT_DATA_DIR = "data"
_DEFAULT_CACHE_DIR = "data/cache"
_DEFAULT_CACHE_EXPIRY_HOURS = 24
_DEFAULT_PLAYER_SCAN_DELAY = 0.1
_DEFAULT_PORT = 3000


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _coerce_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _coerce_list(value: Optional[str], default: List[str]) -> List[str]:
    if value is None or value == "":
        return list(default)
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(default)


def _parse_env_file(path: Path) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = _strip_quotes(value.strip())
    return data


def _load_config_data(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        return {
            str(k): ",".join(str(item) for item in v) if isinstance(v, list) else str(v)
            for k, v in payload.items()
        }
    return _parse_env_file(path)


@dataclass
class Config:
    # Providers
    api_sports_key: str
    api_sports_base_url: str
    odds_api_key: str
    odds_api_base_url: str
    odds_bookmakers: List[str]

    # Storage
    data_dir: str
    cache_dir: str
    cache_expiry_hours: int
    enable_caching: bool

    # Analysis
    recent_games_weight: float = DEFAULT_RECENT_WEIGHT
    min_games_for_prediction: int = DEFAULT_MIN_GAMES
    model_max_age_hours: float = DEFAULT_MODEL_MAX_AGE_HOURS

    # Collection and scanning
    player_scan_delay: float = _DEFAULT_PLAYER_SCAN_DELAY
    default_seasons: List[str] = None  # type: ignore

    # Server
    port: int = _DEFAULT_PORT

    def __post_init__(self) -> None:
        if self.default_seasons is None:
            self.default_seasons = list(DEFAULT_SEASONS)

    @property
    def cache_ttl_seconds(self) -> int:
        return int(self.cache_expiry_hours * 3600)

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            api_sports_key=os.environ.get("API_SPORTS_KEY", ""),
            api_sports_base_url=os.environ.get("API_SPORTS_BASE_URL", _DEFAULT_API_SPORTS_BASE_URL),
            odds_api_key=os.environ.get("ODDS_API_KEY", ""),
            odds_api_base_url=os.environ.get("ODDS_API_BASE_URL", _DEFAULT_ODDS_API_BASE_URL),
            odds_bookmakers=_coerce_list(os.environ.get("ODDS_BOOKMAKERS"), DEFAULT_BOOKMAKERS),
            data_dir=os.environ.get("PROPEDGE_DATA_DIR", _DEFAULT_DATA_DIR),
            cache_dir=os.environ.get("PROPEDGE_CACHE_DIR", _DEFAULT_CACHE_DIR),
            cache_expiry_hours=_coerce_int(
                os.environ.get("CACHE_EXPIRY_HOURS"),
                _DEFAULT_CACHE_EXPIRY_HOURS,
            ),
            enable_caching=_coerce_bool(os.environ.get("ENABLE_CACHING"), True),
            recent_games_weight=_coerce_float(
                os.environ.get("RECENT_GAMES_WEIGHT"),
                DEFAULT_RECENT_WEIGHT,
            ),
            min_games_for_prediction=_coerce_int(
                os.environ.get("MIN_GAMES_FOR_PREDICTION"),
                DEFAULT_MIN_GAMES,
            ),
            model_max_age_hours=_coerce_float(
                os.environ.get("MODEL_MAX_AGE_HOURS"),
                DEFAULT_MODEL_MAX_AGE_HOURS,
            ),
            player_scan_delay=_coerce_float(
                os.environ.get("PLAYER_SCAN_DELAY"),
                _DEFAULT_PLAYER_SCAN_DELAY,
            ),
            default_seasons=_coerce_list(os.environ.get("DEFAULT_SEASONS"), DEFAULT_SEASONS),
            port=_coerce_int(os.environ.get("PORT"), _DEFAULT_PORT),
        )

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        env_config = cls.from_env()
        if not config_path:
            return env_config

        file_data = _load_config_data(Path(config_path))
        return cls(
            api_sports_key=file_data.get("API_SPORTS_KEY", env_config.api_sports_key),
            api_sports_base_url=file_data.get("API_SPORTS_BASE_URL", env_config.api_sports_base_url),
            odds_api_key=file_data.get("ODDS_API_KEY", env_config.odds_api_key),
            odds_api_base_url=file_data.get("ODDS_API_BASE_URL", env_config.odds_api_base_url),
            odds_bookmakers=_coerce_list(
                file_data.get("ODDS_BOOKMAKERS"),
                env_config.odds_bookmakers,
            ),
            data_dir=file_data.get("PROPEDGE_DATA_DIR", env_config.data_dir),
            cache_dir=file_data.get("PROPEDGE_CACHE_DIR", env_config.cache_dir),
            cache_expiry_hours=_coerce_int(
                file_data.get("CACHE_EXPIRY_HOURS"),
                env_config.cache_expiry_hours,
            ),
            enable_caching=_coerce_bool(
                file_data.get("ENABLE_CACHING"),
                env_config.enable_caching,
            ),
            recent_games_weight=_coerce_float(
                file_data.get("RECENT_GAMES_WEIGHT"),
                env_config.recent_games_weight,
            ),
            min_games_for_prediction=_coerce_int(
                file_data.get("MIN_GAMES_FOR_PREDICTION"),
                env_config.min_games_for_prediction,
            ),
            model_max_age_hours=_coerce_float(
                file_data.get("MODEL_MAX_AGE_HOURS"),
                env_config.model_max_age_hours,
            ),
            player_scan_delay=_coerce_float(
                file_data.get("PLAYER_SCAN_DELAY"),
                env_config.player_scan_delay,
            ),
            default_seasons=_coerce_list(
                file_data.get("DEFAULT_SEASONS"),
                env_config.default_seasons,
            ),
            port=_coerce_int(file_data.get("PORT"), env_config.port),
        )

    def to_dict(self) -> Dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}

    def redacted(self) -> Dict[str, str]:
        """to_dict() with API keys masked, for logging."""
        data = self.to_dict()
        for key in ("api_sports_key", "odds_api_key"):
            if data.get(key):
                data[key] = "***"
        return data
