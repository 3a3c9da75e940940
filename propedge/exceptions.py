"""
Custom exceptions for the prop probability engine.

Provides a hierarchy of exceptions so callers can tell recoverable data
problems apart from provider failures.

Usage:
    from propedge.exceptions import PlayerNotFoundError, InsufficientDataError

    try:
        result = calculator.calculate_probability("Invalid Player", "points", 20.5)
    except PlayerNotFoundError as e:
        print(f"Player not found: {e}")
    except InsufficientDataError as e:
        print(f"Not enough games: {e}")
"""


class PropEdgeError(Exception):
    """
    Base exception for all propedge errors.

    All custom exceptions inherit from this, allowing:
        except PropEdgeError:
            # Catch any system error
    """
    pass


# =============================================================================
# DATA ERRORS
# =============================================================================

class DataFetchError(PropEdgeError):
    """
    Error fetching data from an external provider.

    Raised when:
    - API request fails (network error, timeout)
    - API returns error status code
    - Response body cannot be decoded
    """

    def __init__(self, source: str, message: str = None, original_error: Exception = None):
        self.source = source
        self.original_error = original_error
        msg = f"Error fetching from {source}"
        if message:
            msg += f": {message}"
        if original_error:
            msg += f" (caused by: {type(original_error).__name__}: {original_error})"
        super().__init__(msg)


class PlayerNotFoundError(PropEdgeError):
    """
    Player not found in the store or the stats provider.

    Raised when:
    - Player search returns no results
    - No season yields any games for the player
    """

    def __init__(self, player_name: str, reason: str = None):
        self.player_name = player_name
        self.reason = reason
        msg = f'Player not found: "{player_name}"'
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class TeamNotFoundError(PropEdgeError):
    """Team name did not match any team of the requested season."""

    def __init__(self, team_name: str, season: str = None):
        self.team_name = team_name
        self.season = season
        msg = f'Team not found: "{team_name}"'
        if season:
            msg += f" (season: {season})"
        super().__init__(msg)


class InsufficientDataError(PropEdgeError):
    """
    Not enough historical data for reliable analysis.

    Raised when:
    - Player has fewer games than MIN_GAMES_FOR_PREDICTION
    - The requested stat has no values in the game log
    """

    def __init__(self, player_name: str, games_found: int, games_required: int, message: str = None):
        self.player_name = player_name
        self.games_found = games_found
        self.games_required = games_required
        self.message = message or (
            f"Only {games_found} games found. "
            f"Need at least {games_required} games for reliable predictions."
        )
        super().__init__(self.message)


# =============================================================================
# API ERRORS
# =============================================================================

class OddsAPIError(DataFetchError):
    """
    Error from the odds provider.

    Raised when:
    - API key is invalid or missing
    - API returns error response
    """

    def __init__(self, message: str, status_code: int = None, original_error: Exception = None):
        self.status_code = status_code
        if status_code:
            message = f"{message} (status: {status_code})"
        super().__init__("odds_api", message, original_error=original_error)


class RateLimitError(DataFetchError):
    """Rate limit (HTTP 429) exceeded on a provider."""

    def __init__(self, api_name: str, retry_after: int = None):
        self.api_name = api_name
        self.retry_after = retry_after
        self.status_code = 429
        msg = "rate limit exceeded"
        if retry_after:
            msg += f" (retry after {retry_after} seconds)"
        super().__init__(api_name, msg)


# =============================================================================
# ANALYSIS ERRORS
# =============================================================================

class ModelTrainingError(PropEdgeError):
    """The correlation model could not be fitted for a stat type."""

    def __init__(self, stat_type: str, reason: str):
        self.stat_type = stat_type
        self.reason = reason
        super().__init__(f"Model training failed for {stat_type}: {reason}")


class InvalidStatTypeError(PropEdgeError):
    """Invalid or unsupported stat type."""

    def __init__(self, stat_type: str, valid_types=None):
        from propedge.constants import STAT_TYPES

        self.stat_type = stat_type
        self.valid_types = list(valid_types or STAT_TYPES)
        super().__init__(
            f"Invalid stat type '{stat_type}'. Valid types: {', '.join(self.valid_types)}"
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(PropEdgeError):
    """
    Configuration or setup error.

    Raised when:
    - Required API key missing
    - Invalid configuration value
    """

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Configuration error ({setting}): {message}")
