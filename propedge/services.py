"""Wire the clients, stores and engines together from a Config."""

from dataclasses import dataclass
from typing import Optional
import logging

from propedge.analysis.ml_predictor import ModelCache, PseudoMLPredictor
from propedge.analysis.probability import ProbabilityCalculator
from propedge.analysis.statistical import StatisticalAnalysisEngine
from propedge.config import Config
from propedge.ingestion.collector import DataCollector
from propedge.ingestion.odds import OddsClient
from propedge.ingestion.stats_api import StatsAPIClient
from propedge.storage import FileCache, PlayerStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: Config
    store: PlayerStore
    collector: DataCollector
    odds_client: OddsClient
    calculator: ProbabilityCalculator


def build_services(config: Optional[Config] = None) -> Services:
    config = config or Config.load()
    store = PlayerStore(config.data_dir)
    cache = FileCache(config.cache_dir) if config.enable_caching else None
    stats_client = StatsAPIClient(
        config.api_sports_key,
        base_url=config.api_sports_base_url,
        cache=cache,
        cache_ttl_seconds=config.cache_ttl_seconds,
    )
    collector = DataCollector(stats_client, store)
    odds_client = OddsClient(
        config.odds_api_key,
        base_url=config.odds_api_base_url,
        bookmakers=config.odds_bookmakers,
    )
    calculator = ProbabilityCalculator(
        store,
        collector=collector,
        odds_client=odds_client,
        statistical=StatisticalAnalysisEngine(config.recent_games_weight),
        predictor=PseudoMLPredictor(ModelCache(config.model_max_age_hours)),
        min_games=config.min_games_for_prediction,
        seasons=config.default_seasons,
    )
    logger.debug("Services built with config: %s", config.redacted())
    return Services(config, store, collector, odds_client, calculator)
