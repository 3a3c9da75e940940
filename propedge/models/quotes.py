"""Bookmaker prices for one player prop."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from propedge.constants import MIN_DECIMAL_ODDS


@dataclass
class BookmakerQuote:
    """Over/under decimal odds offered by one bookmaker."""

    bookmaker: str
    line: Optional[float]
    over_odds: float
    under_odds: float
    market_name: str = ""
    updated_at: Optional[str] = None

    @property
    def is_priced(self) -> bool:
        """Both sides carry a real decimal price (>= 1.01)."""
        return self.over_odds >= MIN_DECIMAL_ODDS and self.under_odds >= MIN_DECIMAL_ODDS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
