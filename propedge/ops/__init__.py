"""Operational helpers."""

from propedge.ops.rate_limiter import RateLimiter, get_rate_limiter
from propedge.ops.logging import configure_logging

__all__ = ["RateLimiter", "get_rate_limiter", "configure_logging"]
