"""Provider clients and dataset collection."""

from propedge.ingestion.collector import DataCollector, parse_minutes, parse_player_stats
from propedge.ingestion.odds import OddsClient, format_match_date
from propedge.ingestion.stats_api import StatsAPIClient

__all__ = [
    "DataCollector",
    "OddsClient",
    "StatsAPIClient",
    "format_match_date",
    "parse_minutes",
    "parse_player_stats",
]
