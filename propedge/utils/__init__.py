"""Utility modules for propedge."""

from propedge.utils.odds import (
    american_to_implied_prob,
    decimal_to_implied_prob,
    calculate_ev,
    calculate_edge,
    normal_cdf,
    clamp,
    format_pct,
    format_signed_pct,
)

__all__ = [
    "american_to_implied_prob",
    "decimal_to_implied_prob",
    "calculate_ev",
    "calculate_edge",
    "normal_cdf",
    "clamp",
    "format_pct",
    "format_signed_pct",
]
