"""Player prop probability and EV engine."""

__all__ = [
    "analysis",
    "api",
    "cli",
    "config",
    "constants",
    "exceptions",
    "ingestion",
    "models",
    "ops",
    "storage",
    "utils",
]

__version__ = "0.1.0"
