"""
Correlation-weighted linear predictor for the next game's stat value.

Each feature's weight is its Pearson correlation with the target, scaled so
the absolute weights sum to 1. Trained models are cached per stat type and
retrained once they are older than ``max_age_hours``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

import numpy as np

from propedge.constants import (
    DEFAULT_MIN_GAMES,
    DEFAULT_MODEL_MAX_AGE_HOURS,
    ML_CONTEXT_GAMES,
    ML_MODEL_NAME,
    ML_VALIDATION_GAMES,
    ML_WINDOW_GAMES,
)
from propedge.exceptions import ModelTrainingError
from propedge.models.context import GameContext
from propedge.models.records import GameRecord
from propedge.utils.odds import clamp, normal_cdf

logger = logging.getLogger(__name__)

FEATURE_NAMES = ["is_home", "minutes", "recent_avg", "game_index"]

# Spread assumed around a prediction when no historical std is available
_FALLBACK_STD_SHARE = 0.2

TRAINING_FAILED = "Model training failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TrainedLinearModel:
    weights: List[float]
    feature_count: int
    trained_at: datetime
    sample_size: int

    def predict(self, features: Sequence[float]) -> float:
        """Weighted sum of [is_home, minutes, recent_avg, game_index], floored at 0."""
        is_home, minutes, recent_avg, game_index = features
        vector = [is_home, minutes, recent_avg, game_index or 1]
        prediction = sum(value * weight for value, weight in zip(vector, self.weights))
        return max(0.0, prediction)


class ModelCache:
    """
    Trained models keyed by stat type.

    Plain dict, no locking: concurrent retrains of the same stat type
    simply overwrite each other. ``clock`` returns an aware datetime and
    is injectable so staleness can be tested without waiting a week.
    """

    def __init__(
        self,
        max_age_hours: float = DEFAULT_MODEL_MAX_AGE_HOURS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.max_age_hours = max_age_hours
        self._clock = clock or _utc_now
        self._models: Dict[str, TrainedLinearModel] = {}

    def now(self) -> datetime:
        return self._clock()

    def get(self, stat_type: str) -> Optional[TrainedLinearModel]:
        return self._models.get(stat_type)

    def put(self, stat_type: str, model: TrainedLinearModel) -> None:
        self._models[stat_type] = model

    def is_stale(self, model: Optional[TrainedLinearModel]) -> bool:
        if model is None:
            return True
        age_hours = (self.now() - model.trained_at).total_seconds() / 3600
        return age_hours > self.max_age_hours

    def get_fresh(self, stat_type: str) -> Optional[TrainedLinearModel]:
        model = self.get(stat_type)
        if self.is_stale(model):
            return None
        return model

    def clear(self) -> None:
        self._models.clear()

    def __len__(self) -> int:
        return len(self._models)


@dataclass
class MLPrediction:
    prediction: Optional[float]
    confidence: float
    model: Optional[str] = None
    features: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.prediction is not None and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if not self.available:
            return {"prediction": None, "confidence": 0, "error": self.error}
        return {
            "prediction": self.prediction,
            "confidence": self.confidence,
            "model": self.model,
            "features": dict(self.features),
        }

    @classmethod
    def failed(cls, error: str) -> "MLPrediction":
        return cls(prediction=None, confidence=0.0, error=error)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Population Pearson correlation; 0 when either side has no spread."""
    if len(x) != len(y) or len(x) == 0:
        return 0.0
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    std_x = float(np.std(x_arr))
    std_y = float(np.std(y_arr))
    if std_x == 0 or std_y == 0:
        return 0.0
    z_x = (x_arr - x_arr.mean()) / std_x
    z_y = (y_arr - y_arr.mean()) / std_y
    return float(np.sum(z_x * z_y) / len(x_arr))


def ml_probability(
    prediction: Optional[float],
    line: float,
    historical_std: Optional[float] = None,
) -> Dict[str, float]:
    """Over/under probability treating the prediction as a normal mean."""
    if not prediction:
        return {"over": 0.5, "under": 0.5}
    std_dev = historical_std or prediction * _FALLBACK_STD_SHARE
    under = normal_cdf((line - prediction) / std_dev)
    return {"over": 1 - under, "under": under}


class PseudoMLPredictor:
    def __init__(self, cache: Optional[ModelCache] = None, min_games: int = DEFAULT_MIN_GAMES) -> None:
        self.cache = cache if cache is not None else ModelCache()
        self.min_games = min_games

    def extract_features(self, games: Sequence[GameRecord], index: int, stat_type: str) -> List[float]:
        """[is_home, minutes, mean of the previous five games, raw index]."""
        game = games[index]
        previous = [g.stat(stat_type) for g in games[max(0, index - ML_CONTEXT_GAMES):index]]
        previous = [v for v in previous if v is not None]
        recent_avg = float(np.mean(previous)) if previous else float(game.stat(stat_type) or 0)
        return [1.0 if game.is_home else 0.0, float(game.minutes), recent_avg, float(index)]

    def calculate_weights(self, rows: Sequence[Sequence[float]], targets: Sequence[float]) -> List[float]:
        columns = list(zip(*rows))
        correlations = [pearson_correlation(column, targets) for column in columns]
        total = sum(abs(c) for c in correlations)
        if total == 0:
            raise ModelTrainingError("", "no feature correlates with the target")
        return [c / total for c in correlations]

    def train_model(self, games: Sequence[GameRecord], stat_type: str) -> TrainedLinearModel:
        """Fit on a chronological window and store the result in the cache."""
        if len(games) < self.min_games:
            raise ModelTrainingError(
                stat_type, f"need at least {self.min_games} games, got {len(games)}"
            )

        rows: List[List[float]] = []
        targets: List[float] = []
        for index in range(ML_CONTEXT_GAMES, len(games)):
            features = self.extract_features(games, index, stat_type)
            features[3] = index / len(games)
            rows.append(features)
            targets.append(float(games[index].stat(stat_type) or 0))

        try:
            weights = self.calculate_weights(rows, targets)
        except ModelTrainingError as exc:
            raise ModelTrainingError(stat_type, exc.reason) from exc

        model = TrainedLinearModel(
            weights=weights,
            feature_count=len(FEATURE_NAMES),
            trained_at=self.cache.now(),
            sample_size=len(rows),
        )
        self.cache.put(stat_type, model)
        logger.info(
            "Trained %s model on %d rows: weights=%s",
            stat_type,
            len(rows),
            [round(w, 3) for w in weights],
        )
        return model

    def calculate_prediction_confidence(
        self,
        window: Sequence[GameRecord],
        stat_type: str,
        model: TrainedLinearModel,
    ) -> float:
        """1 - MAPE over the first games of the window, 0.5 when nothing can be validated."""
        validation = list(window[:ML_VALIDATION_GAMES])
        ratios: List[float] = []
        for index in range(ML_CONTEXT_GAMES, len(validation)):
            features = self.extract_features(validation, index, stat_type)
            predicted = model.predict(features)
            actual = float(validation[index].stat(stat_type) or 0)
            ratios.append(abs(predicted - actual) / actual if actual > 0 else 0.0)

        if not ratios:
            return 0.5
        return clamp(1 - float(np.mean(ratios)))

    def generate_prediction(
        self,
        games: Sequence[GameRecord],
        stat_type: str,
        context: Optional[GameContext] = None,
        order: str = "desc",
    ) -> MLPrediction:
        """
        Predict the upcoming game's value.

        Never raises for data problems; failures come back as an
        MLPrediction with ``prediction=None`` and an error message.
        """
        if order not in ("desc", "asc"):
            raise ValueError(f"order must be 'desc' or 'asc', got {order!r}")
        context = context or GameContext()
        newest_first = list(games) if order == "desc" else list(reversed(games))
        window = list(reversed(newest_first[:ML_WINDOW_GAMES]))

        if len(window) < self.min_games:
            return MLPrediction.failed(
                f"Insufficient data for ML prediction ({len(window)} games, need {self.min_games})"
            )

        model = self.cache.get_fresh(stat_type)
        if model is None:
            try:
                model = self.train_model(window, stat_type)
            except ModelTrainingError as exc:
                logger.warning("%s", exc)
                return MLPrediction.failed(TRAINING_FAILED)

        minutes = context.expected_minutes or float(np.mean([g.minutes for g in window]))
        latest = [g.stat(stat_type) for g in window[-ML_CONTEXT_GAMES:]]
        recent_avg = float(np.mean([v for v in latest if v is not None] or [0]))
        is_home = 1.0 if context.is_home else 0.0

        prediction = model.predict([is_home, minutes, recent_avg, 1])
        confidence = self.calculate_prediction_confidence(window, stat_type, model)

        return MLPrediction(
            prediction=prediction,
            confidence=confidence,
            model=ML_MODEL_NAME,
            features={
                "home_advantage": bool(is_home),
                "expected_minutes": minutes,
                "recent_form": recent_avg,
            },
        )
