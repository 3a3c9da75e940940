"""Probability engines, blending and odds comparison."""

from propedge.analysis.ml_predictor import (
    MLPrediction,
    ModelCache,
    PseudoMLPredictor,
    TrainedLinearModel,
    ml_probability,
)
from propedge.analysis.odds_reconciliation import (
    OddsAvailable,
    OddsUnavailable,
    odds_unavailable,
    reconcile_odds,
)
from propedge.analysis.probability import (
    BlendedProbability,
    PredictionResult,
    ProbabilityCalculator,
    Recommendation,
    combine_probabilities,
    generate_recommendation,
)
from propedge.analysis.statistical import (
    PropAnalysis,
    StatisticalAnalysisEngine,
    StatisticalSummary,
)
from propedge.analysis.value_scan import estimate_line, scan_value_bets

__all__ = [
    "BlendedProbability",
    "MLPrediction",
    "ModelCache",
    "OddsAvailable",
    "OddsUnavailable",
    "PredictionResult",
    "ProbabilityCalculator",
    "PropAnalysis",
    "PseudoMLPredictor",
    "Recommendation",
    "StatisticalAnalysisEngine",
    "StatisticalSummary",
    "TrainedLinearModel",
    "combine_probabilities",
    "estimate_line",
    "generate_recommendation",
    "ml_probability",
    "odds_unavailable",
    "reconcile_odds",
    "scan_value_bets",
]
