"""Upcoming-game context passed alongside a prop request."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class GameContext:
    is_home: Optional[bool] = None
    opponent: Optional[str] = None
    expected_minutes: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GameContext":
        """Accept either the JSON spelling (isHome) or attribute names."""
        if not data:
            return cls()
        is_home = data.get("isHome", data.get("is_home"))
        return cls(
            is_home=None if is_home is None else bool(is_home),
            opponent=data.get("opponent") or None,
            expected_minutes=_optional_float(
                data.get("expectedMinutes", data.get("expected_minutes"))
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opponent": self.opponent or "TBD",
            "is_home": self.is_home,
            "expected_minutes": self.expected_minutes,
        }
