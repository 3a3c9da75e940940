"""
Prop probability orchestration.

ProbabilityCalculator resolves a player's game log, runs the statistical
engine and the ML predictor side by side, blends their over/under
probabilities and turns the result into a bet recommendation.

Usage:
    from propedge.analysis import ProbabilityCalculator

    calculator = ProbabilityCalculator(store=PlayerStore("data"))
    result = calculator.calculate_probability("LeBron James", "points", 24.5)
    print(result.recommendation.bet, result.probability.over)
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from propedge.analysis.ml_predictor import MLPrediction, PseudoMLPredictor, ml_probability
from propedge.analysis.odds_reconciliation import (
    OddsResult,
    odds_unavailable,
    reconcile_odds,
)
from propedge.analysis.statistical import PropAnalysis, StatisticalAnalysisEngine
from propedge.constants import (
    BET_OVER,
    BET_UNDER,
    DEFAULT_MIN_GAMES,
    DEFAULT_MIN_MINUTES,
    METHOD_HYBRID,
    METHOD_STATISTICAL,
    MIN_EDGE,
    ML_MAX_WEIGHT,
    ML_MIN_CONFIDENCE,
    MODERATE_CONFIDENCE,
    MODERATE_EDGE,
    NO_BET,
    ODDS_EVENT_UNAVAILABLE,
    ODDS_NO_EVENT_ID,
    ODDS_PLAYER_NOT_FOUND,
    OVER_THRESHOLD,
    STRENGTH_MODERATE,
    STRENGTH_NONE,
    STRENGTH_STRONG,
    STRENGTH_WEAK,
    STRONG_CONFIDENCE,
    STRONG_EDGE,
    UNDER_THRESHOLD,
    WEAK_CONFIDENCE,
    WEAK_EDGE,
    is_supported_stat,
    normalize_stat_key,
)
from propedge.exceptions import InsufficientDataError, InvalidStatTypeError, PlayerNotFoundError
from propedge.models.context import GameContext
from propedge.models.records import GameRecord, PlayerDataset, filter_games
from propedge.utils.odds import calculate_edge, clamp, format_pct

logger = logging.getLogger(__name__)


@dataclass
class BlendedProbability:
    over: float
    under: float
    method: str
    stat_weight: Optional[float] = None
    ml_weight: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "over": format_pct(self.over, 2),
            "under": format_pct(self.under, 2),
            "method": self.method,
            "raw_over": self.over,
            "raw_under": self.under,
        }
        if self.ml_weight is not None:
            payload["weights"] = {
                "statistical": format_pct(self.stat_weight),
                "ml": format_pct(self.ml_weight),
            }
        return payload


@dataclass
class Recommendation:
    bet: str
    strength: str
    reasoning: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"bet": self.bet, "strength": self.strength, "reasoning": list(self.reasoning)}


@dataclass
class PredictionResult:
    player: str
    stat_type: str
    line: float
    probability: BlendedProbability
    recommendation: Recommendation
    analysis: PropAnalysis
    ml: MLPrediction
    sample_size: int
    context: GameContext
    odds: Optional[OddsResult] = None

    @property
    def prop(self) -> str:
        return f"{self.stat_type.upper()} {self.line:g}"

    @property
    def projection(self) -> float:
        return self.analysis.weighted_avg or self.analysis.summary.mean or 0.0

    @property
    def recent_average(self) -> float:
        return self.analysis.summary.mean

    def to_dict(self) -> Dict[str, Any]:
        stat = self.analysis.to_dict()
        payload = {
            "player": self.player,
            "prop": self.prop,
            "stat_type": self.stat_type,
            "line": self.line,
            "probability": self.probability.to_dict(),
            "recommendation": self.recommendation.to_dict(),
            "projection": self.projection,
            "recent_average": self.recent_average,
            "analysis": {
                "statistical": stat["statistics"],
                "base_probability": stat["probability"]["base"],
                "historical": stat["historical"],
                "trend": stat["trend"],
                "splits": stat["splits"],
                "machine_learning": self.ml.to_dict(),
            },
            "confidence": {
                "overall": self.analysis.confidence.level,
                "score": self.analysis.confidence.score,
                "consistency": self.analysis.confidence.consistency,
                "sample_size": self.sample_size,
            },
            "adjustments": stat["adjustments"],
            "game_context": self.context.to_dict(),
        }
        if self.odds is not None:
            payload["odds"] = self.odds.to_dict()
        return payload


def combine_probabilities(analysis: PropAnalysis, ml: MLPrediction) -> BlendedProbability:
    """
    Blend statistical and ML probabilities.

    The ML side only counts when it produced a prediction with confidence
    of at least 0.3, and never carries more than 40% of the weight.
    """
    if not ml.prediction or ml.confidence < ML_MIN_CONFIDENCE:
        return BlendedProbability(
            over=clamp(analysis.over),
            under=clamp(analysis.under),
            method=METHOD_STATISTICAL,
        )

    # The ML curve is centred on the base probability expressed as a line
    ml_prob = ml_probability(ml.prediction, analysis.base * 100, analysis.summary.std_dev)
    ml_weight = ml.confidence * ML_MAX_WEIGHT
    stat_weight = 1 - ml_weight
    return BlendedProbability(
        over=clamp(analysis.over * stat_weight + ml_prob["over"] * ml_weight),
        under=clamp(analysis.under * stat_weight + ml_prob["under"] * ml_weight),
        method=METHOD_HYBRID,
        stat_weight=stat_weight,
        ml_weight=ml_weight,
    )


def generate_recommendation(over_probability: float, confidence_score: float, confidence_level: str) -> Recommendation:
    if over_probability >= OVER_THRESHOLD:
        bet = BET_OVER
    elif over_probability <= UNDER_THRESHOLD:
        bet = BET_UNDER
    else:
        return Recommendation(NO_BET, STRENGTH_NONE, ["Probability too close to 50/50 - no clear edge"])

    edge = abs(over_probability - 0.5)
    if edge >= STRONG_EDGE and confidence_score >= STRONG_CONFIDENCE:
        strength = STRENGTH_STRONG
    elif edge >= MODERATE_EDGE and confidence_score >= MODERATE_CONFIDENCE:
        strength = STRENGTH_MODERATE
    elif edge >= WEAK_EDGE and confidence_score >= WEAK_CONFIDENCE:
        strength = STRENGTH_WEAK
    else:
        return Recommendation(NO_BET, STRENGTH_NONE, ["Edge or confidence too low"])

    reasoning = []
    if bet == BET_OVER:
        reasoning.append(f"{format_pct(over_probability)} probability of going OVER")
    else:
        reasoning.append(f"{format_pct(1 - over_probability)} probability of going UNDER")
    reasoning.append(f"Confidence: {confidence_level} ({format_pct(confidence_score)})")
    if edge >= MODERATE_EDGE:
        reasoning.append(f"Strong edge detected ({format_pct(edge)})")
    return Recommendation(bet, strength, reasoning)


class ProbabilityCalculator:
    def __init__(
        self,
        store,
        collector=None,
        odds_client=None,
        statistical: Optional[StatisticalAnalysisEngine] = None,
        predictor: Optional[PseudoMLPredictor] = None,
        min_games: int = DEFAULT_MIN_GAMES,
        min_minutes: float = DEFAULT_MIN_MINUTES,
        seasons: Optional[List[str]] = None,
    ) -> None:
        self.store = store
        self.collector = collector
        self.odds_client = odds_client
        self.statistical = statistical or StatisticalAnalysisEngine()
        self.predictor = predictor or PseudoMLPredictor()
        self.min_games = min_games
        self.min_minutes = min_minutes
        self.seasons = seasons

    def resolve_dataset(self, player_name: str) -> PlayerDataset:
        """Stored dataset for the player, collecting it when missing."""
        dataset = self.store.resolve(player_name)
        if dataset is not None:
            return dataset
        if self.collector is None:
            raise PlayerNotFoundError(player_name, "no stored data and no collector configured")
        logger.info("Player data not found locally for %s. Collecting from API...", player_name)
        return self.collector.collect_player_dataset(player_name, self.seasons)

    def analyze_games(
        self,
        games: List[GameRecord],
        stat_type: str,
        line: float,
        context: GameContext,
    ) -> Tuple[PropAnalysis, MLPrediction]:
        with ThreadPoolExecutor(max_workers=2) as executor:
            stat_future = executor.submit(self.statistical.analyze_prop, games, stat_type, line, context)
            ml_future = executor.submit(self.predictor.generate_prediction, games, stat_type, context)
            return stat_future.result(), ml_future.result()

    def calculate_probability(
        self,
        player_name: str,
        stat_type: str,
        line: float,
        context: Optional[GameContext] = None,
    ) -> PredictionResult:
        """
        Probability that ``player_name`` goes over ``line`` for ``stat_type``.

        Raises:
            InvalidStatTypeError: stat type is not supported
            PlayerNotFoundError: player cannot be resolved or collected
            InsufficientDataError: fewer than ``min_games`` games on record
        """
        if not is_supported_stat(stat_type):
            raise InvalidStatTypeError(stat_type)
        stat_type = normalize_stat_key(stat_type)
        line = float(line)
        context = context or GameContext()

        logger.info("Calculating probability for %s %s %s", player_name, stat_type, line)
        dataset = self.resolve_dataset(player_name)
        all_games = dataset.all_games()
        if len(all_games) < self.min_games:
            raise InsufficientDataError(dataset.name or player_name, len(all_games), self.min_games)

        qualifying = filter_games(all_games, min_minutes=self.min_minutes)
        logger.info(
            "Analyzing %d games (filtered by %s+ minutes)",
            len(qualifying),
            f"{self.min_minutes:g}",
        )

        analysis, ml = self.analyze_games(qualifying, stat_type, line, context)
        probability = combine_probabilities(analysis, ml)
        recommendation = generate_recommendation(
            probability.over,
            analysis.confidence.score,
            analysis.confidence.level,
        )

        return PredictionResult(
            player=dataset.name,
            stat_type=stat_type,
            line=line,
            probability=probability,
            recommendation=recommendation,
            analysis=analysis,
            ml=ml,
            sample_size=len(qualifying),
            context=context,
        )

    def calculate_all_props(
        self,
        player_name: str,
        lines: Mapping[str, float],
        context: Optional[GameContext] = None,
    ) -> Dict[str, Dict[str, Any]]:
        """One independent calculation per stat type; failures stay local to their entry."""
        results: Dict[str, Dict[str, Any]] = {}
        for stat_type, line in lines.items():
            try:
                results[stat_type] = self.calculate_probability(player_name, stat_type, line, context).to_dict()
            except Exception as exc:
                logger.warning("Prop %s for %s failed: %s", stat_type, player_name, exc)
                message = exc.message if isinstance(exc, InsufficientDataError) else str(exc)
                results[stat_type] = {"error": message}
        return results

    def calculate_edge(self, our_probability: float, american_odds: int, min_edge: float = MIN_EDGE) -> Dict[str, Any]:
        return calculate_edge(our_probability, american_odds, min_edge=min_edge)

    def attach_odds(self, result: PredictionResult, player_name: str, event_id: Optional[str]) -> OddsResult:
        if not event_id:
            return odds_unavailable(ODDS_NO_EVENT_ID)
        if self.odds_client is None:
            return odds_unavailable(ODDS_EVENT_UNAVAILABLE)

        logger.info("Fetching odds for event %s, player: %s, stat: %s", event_id, player_name, result.stat_type)
        odds_data = self.odds_client.get_event_odds(event_id)
        if not odds_data:
            logger.warning("No odds data returned for event %s", event_id)
            return odds_unavailable(ODDS_EVENT_UNAVAILABLE)

        quotes = self.odds_client.extract_player_quotes(odds_data, player_name, result.stat_type)
        if not quotes:
            logger.warning("Player %s not found in odds for %s", player_name, result.stat_type)
            return odds_unavailable(ODDS_PLAYER_NOT_FOUND)

        logger.info("Found %s %s props from %d bookmakers", player_name, result.stat_type, len(quotes))
        return reconcile_odds(result.probability.over, result.probability.under, quotes)

    def predict_with_odds(
        self,
        player_name: str,
        stat_type: str,
        line: float,
        context: Optional[GameContext] = None,
        event_id: Optional[str] = None,
    ) -> PredictionResult:
        result = self.calculate_probability(player_name, stat_type, line, context)
        result.odds = self.attach_odds(result, player_name, event_id)
        return result
