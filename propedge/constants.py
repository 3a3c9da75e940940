"""
Constants for propedge.

Provides supported stat types and their aliases, probability thresholds,
bookmaker market names, and season defaults.
"""

from typing import Dict, List


# =============================================================================
# STAT TYPES
# =============================================================================

STAT_TYPES: List[str] = [
    'points',
    'rebounds',
    'assists',
    'pra',
    'points_assists',
    'points_rebounds',
    'rebounds_assists',
]

# Stat types scanned by the value-bet finder
SCAN_STAT_TYPES: List[str] = ['points', 'rebounds', 'assists']

# Derived combination fields and the base counts they sum
COMBINED_STATS: Dict[str, tuple] = {
    'pra': ('points', 'rebounds', 'assists'),
    'points_assists': ('points', 'assists'),
    'points_rebounds': ('points', 'rebounds'),
    'rebounds_assists': ('rebounds', 'assists'),
}

# Mapping from prop aliases to game log field names
STAT_KEY_MAP: Dict[str, str] = {
    'points': 'points',
    'pts': 'points',
    'rebounds': 'rebounds',
    'reb': 'rebounds',
    'assists': 'assists',
    'ast': 'assists',
    'pra': 'pra',
    'pts_reb_ast': 'pra',
    'points_assists': 'points_assists',
    'pts_ast': 'points_assists',
    'points_rebounds': 'points_rebounds',
    'pts_reb': 'points_rebounds',
    'rebounds_assists': 'rebounds_assists',
    'reb_ast': 'rebounds_assists',
}


def normalize_stat_key(stat_type: str) -> str:
    """
    Normalize a stat type to the game log field name.

    Args:
        stat_type: Stat type string (e.g., 'points', 'pts', 'pts_ast')

    Returns:
        Normalized field name, or the lowercased input if unknown
    """
    key = (stat_type or "").strip().lower()
    return STAT_KEY_MAP.get(key, key)


def is_supported_stat(stat_type: str) -> bool:
    return normalize_stat_key(stat_type) in STAT_TYPES


# =============================================================================
# PROBABILITY THRESHOLDS
# =============================================================================

OVER_THRESHOLD = 0.60
UNDER_THRESHOLD = 0.40

STRONG_EDGE = 0.20
MODERATE_EDGE = 0.15
WEAK_EDGE = 0.10

STRONG_CONFIDENCE = 0.7
MODERATE_CONFIDENCE = 0.6
WEAK_CONFIDENCE = 0.5

# Edge vs American odds needed to call a bet
MIN_EDGE = 0.05

# EV needed for a bookmaker side to count as value
MIN_EV = 0.05

# Lowest decimal price a bookmaker can offer; anything below is a suspended side
MIN_DECIMAL_ODDS = 1.01

# ML predictions below this confidence are ignored when blending
ML_MIN_CONFIDENCE = 0.3
ML_MAX_WEIGHT = 0.4

# Confidence labels, checked top-down
CONFIDENCE_LEVELS = [
    (0.8, 'Very High'),
    (0.65, 'High'),
    (0.5, 'Moderate'),
    (0.35, 'Low'),
]
LOWEST_CONFIDENCE_LEVEL = 'Very Low'

BET_OVER = 'OVER'
BET_UNDER = 'UNDER'
NO_BET = 'NO BET'
NO_VALUE = 'NO VALUE'

STRENGTH_STRONG = 'STRONG'
STRENGTH_MODERATE = 'MODERATE'
STRENGTH_WEAK = 'WEAK'
STRENGTH_NONE = 'N/A'


# =============================================================================
# ANALYSIS DEFAULTS
# =============================================================================

DEFAULT_MIN_GAMES = 10
DEFAULT_MIN_MINUTES = 15.0
DEFAULT_RECENT_WEIGHT = 0.6
DEFAULT_MODEL_MAX_AGE_HOURS = 168

# Games used by the ML predictor window and validation slice
ML_WINDOW_GAMES = 30
ML_CONTEXT_GAMES = 5
ML_VALIDATION_GAMES = 10

# Games averaged to estimate a line when scanning for value
SCAN_LINE_GAMES = 10


# =============================================================================
# PROVIDERS
# =============================================================================

NBA_LEAGUE_ID = 12
NBA_LEAGUE_SLUG = 'usa-nba'

DEFAULT_SEASONS: List[str] = ['2023-2024', '2024-2025']

# Teams searched per season when the player's team is unknown
TEAM_SEARCH_LIMIT = 5

DEFAULT_BOOKMAKERS: List[str] = ['Bet365', 'Kambi']

# Bookmaker market names per stat type
MARKET_NAMES: Dict[str, str] = {
    'points': 'Points O/U',
    'rebounds': 'Rebounds O/U',
    'assists': 'Assists O/U',
    'pra': 'Points, Assists & Rebounds O/U',
    'points_assists': 'Points & Assists O/U',
    'points_rebounds': 'Points & Rebounds O/U',
    'rebounds_assists': 'Assists & Rebounds O/U',
}


# =============================================================================
# MESSAGES
# =============================================================================

ODDS_PLAYER_NOT_FOUND = 'Player not found in odds'
ODDS_EVENT_UNAVAILABLE = 'Odds not available for this event'
ODDS_NO_EVENT_ID = 'No event ID provided'

METHOD_STATISTICAL = 'Statistical (ML unavailable)'
METHOD_HYBRID = 'Hybrid (Statistical + ML)'
ML_MODEL_NAME = 'Polynomial Regression'
