"""
Odds conversion and betting math utilities.

Provides:
- Odds format conversions (American, Decimal, Implied Probability)
- Expected Value and edge calculations
- The normal CDF approximation shared by both analysis engines
"""

import math
from typing import Dict, Any

from propedge.constants import MIN_EDGE


# =============================================================================
# ODDS CONVERSIONS
# =============================================================================

def american_to_implied_prob(odds: int) -> float:
    """
    Convert American odds to implied probability.

    Note: This includes the vig/juice, so probabilities will sum > 100%.

    Examples:
        +150 -> 0.400
        -110 -> 0.524
        -200 -> 0.667
    """
    if odds > 0:
        return 100 / (odds + 100)
    else:
        return abs(odds) / (abs(odds) + 100)


def decimal_to_implied_prob(decimal_odds: float) -> float:
    """Implied probability of decimal odds (2.0 -> 0.5)."""
    return 1 / decimal_odds


# =============================================================================
# EXPECTED VALUE
# =============================================================================

def calculate_ev(probability: float, decimal_odds: float) -> float:
    """
    Expected profit per unit staked.

    EV = p * (odds - 1) - (1 - p) * 1

    A fair coin at even money (p=0.5, odds=2.0) has zero EV.

    Args:
        probability: Our estimated probability of the side winning
        decimal_odds: Bookmaker decimal odds for that side

    Returns:
        EV as decimal (0.05 = +5% per unit)
    """
    return (probability * (decimal_odds - 1)) - ((1 - probability) * 1)


def calculate_edge(probability: float, american_odds: int, min_edge: float = MIN_EDGE) -> Dict[str, Any]:
    """
    Compare our probability with the probability implied by American odds.

    Edge = Our estimated probability - Implied probability from odds

    Args:
        probability: Our estimated probability of winning
        american_odds: Bookmaker price in American format
        min_edge: Edge needed before recommending a bet

    Returns:
        Dictionary with raw and formatted implied probability and edge,
        has_edge and a BET / NO BET recommendation
    """
    implied = american_to_implied_prob(american_odds)
    edge = probability - implied
    has_edge = edge > min_edge
    return {
        "implied_probability": implied,
        "our_probability": probability,
        "edge": edge,
        "implied_probability_pct": format_pct(implied, 2),
        "our_probability_pct": format_pct(probability, 2),
        "edge_pct": format_pct(edge, 2),
        "has_edge": has_edge,
        "recommendation": "BET" if has_edge else "NO BET",
    }


# =============================================================================
# STATISTICAL FUNCTIONS
# =============================================================================

def normal_cdf(z: float) -> float:
    """
    Standard normal CDF using the Abramowitz-Stegun 26.2.17 approximation.

    Accurate to roughly 1e-7, symmetric by construction:
    normal_cdf(z) + normal_cdf(-z) == 1.
    """
    t = 1 / (1 + 0.2316419 * abs(z))
    d = 0.3989423 * math.exp(-z * z / 2)
    tail = d * t * (0.3193815 + t * (-0.3565638 + t * (1.781478 + t * (-1.821256 + t * 1.330274))))
    return 1 - tail if z > 0 else tail


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def format_pct(value: float, decimals: int = 1) -> str:
    """0.5234 -> '52.3%'."""
    return f"{value * 100:.{decimals}f}%"


def format_signed_pct(value: float, decimals: int = 1) -> str:
    """0.05 -> '+5.0%', -0.021 -> '-2.1%'."""
    return f"{value * 100:+.{decimals}f}%"
