"""
Statistical analysis of a player's game log against a prop line.

The engine combines the historical over rate with a normal approximation of
the stat distribution, then nudges the result for home court, recent trend
and expected playing time.

Games are expected most recent first. Pass ``order="asc"`` when handing over
a chronological list; it is reversed before any recency-sensitive step.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import math

import numpy as np
import pandas as pd

from propedge.constants import (
    CONFIDENCE_LEVELS,
    DEFAULT_RECENT_WEIGHT,
    LOWEST_CONFIDENCE_LEVEL,
)
from propedge.exceptions import InsufficientDataError
from propedge.models.context import GameContext
from propedge.models.records import GameRecord
from propedge.utils.odds import clamp, format_signed_pct, normal_cdf

logger = logging.getLogger(__name__)

# Share of games treated as "recent" for the weighted average, capped at 10
_RECENT_SHARE = 0.3
_RECENT_CAP = 10

_TREND_MIN_GAMES = 3
_TREND_THRESHOLD = 0.5
_TREND_ADJUSTMENT = 0.05

_HISTORICAL_WEIGHT = 0.6
_NORMAL_WEIGHT = 0.4
_AWAY_FACTOR = 0.7
_MINUTES_FACTOR = 0.1
_MINUTES_RECORD_THRESHOLD = 0.01

_CONFIDENCE_SAMPLE_CAP = 50
_SAMPLE_WEIGHT = 0.4
_CONSISTENCY_WEIGHT = 0.6

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"


@dataclass
class StatisticalSummary:
    mean: float
    median: float
    mode: float
    std_dev: float
    variance: float
    min: float
    max: float
    q1: float
    q3: float
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TrendResult:
    direction: str = TREND_STABLE
    slope: float = 0.0
    r_squared: float = 0.0


@dataclass
class HistoricalResult:
    over_count: int
    under_count: int
    push_count: int
    total_games: int

    @property
    def over_rate(self) -> float:
        return self.over_count / self.total_games if self.total_games else 0.0

    @property
    def under_rate(self) -> float:
        return self.under_count / self.total_games if self.total_games else 0.0

    @property
    def push_rate(self) -> float:
        return self.push_count / self.total_games if self.total_games else 0.0


@dataclass
class HomeAwaySplit:
    impact: float = 0.0
    home_avg: float = 0.0
    away_avg: float = 0.0
    home_games: int = 0
    away_games: int = 0


@dataclass
class Adjustment:
    factor: str
    impact: str

    def to_dict(self) -> Dict[str, str]:
        return {"factor": self.factor, "impact": self.impact}


@dataclass
class ConfidenceResult:
    score: float
    level: str
    consistency: float
    sample_size: int


@dataclass
class PropAnalysis:
    """Everything the statistical engine derives for one stat and line."""

    stat_type: str
    line: float
    over: float
    under: float
    base: float
    summary: StatisticalSummary
    weighted_avg: float
    historical: HistoricalResult
    trend: TrendResult
    splits: HomeAwaySplit
    confidence: ConfidenceResult
    adjustments: List[Adjustment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "stat_type": self.stat_type,
            "probability": {"over": self.over, "under": self.under, "base": self.base},
            "statistics": {
                "mean": self.summary.mean,
                "median": self.summary.median,
                "mode": self.summary.mode,
                "weighted_avg": self.weighted_avg,
                "std_dev": self.summary.std_dev,
                "min": self.summary.min,
                "max": self.summary.max,
                "q1": self.summary.q1,
                "q3": self.summary.q3,
            },
            "historical": {
                "over_count": self.historical.over_count,
                "under_count": self.historical.under_count,
                "push_count": self.historical.push_count,
                "over_rate": self.historical.over_rate,
                "total_games": self.historical.total_games,
            },
            "trend": {
                "direction": self.trend.direction,
                "slope": self.trend.slope,
                "strength": self.trend.r_squared,
            },
            "splits": {
                "home": self.splits.home_avg,
                "away": self.splits.away_avg,
                "impact": self.splits.impact,
            },
            "confidence": {
                "score": self.confidence.score,
                "level": self.confidence.level,
                "consistency": self.confidence.consistency,
            },
            "adjustments": [adj.to_dict() for adj in self.adjustments],
        }


def _stat_values(games: Sequence[GameRecord], stat_type: str) -> List[float]:
    values = [game.stat(stat_type) for game in games]
    return [value for value in values if value is not None]


def _calculate_mode(values: Sequence[float]) -> float:
    # First value to reach a new highest count wins ties
    frequency: Dict[float, int] = {}
    max_freq = 0
    mode = values[0]
    for value in values:
        frequency[value] = frequency.get(value, 0) + 1
        if frequency[value] > max_freq:
            max_freq = frequency[value]
            mode = value
    return mode


def get_confidence_level(score: float) -> str:
    for threshold, label in CONFIDENCE_LEVELS:
        if score >= threshold:
            return label
    return LOWEST_CONFIDENCE_LEVEL


def normal_probability(value: float, mean: float, std_dev: float) -> float:
    """P(X <= value) for X ~ N(mean, std_dev); a step function when std_dev is 0."""
    if std_dev == 0:
        if value < mean:
            return 0.0
        if value > mean:
            return 1.0
        return 0.5
    return normal_cdf((value - mean) / std_dev)


class StatisticalAnalysisEngine:
    def __init__(self, recent_weight: float = DEFAULT_RECENT_WEIGHT) -> None:
        self.recent_weight = recent_weight

    def calculate_stats(self, games: Sequence[GameRecord], stat_type: str) -> Optional[StatisticalSummary]:
        """Descriptive statistics for ``stat_type``, or None when no values exist."""
        values = _stat_values(games, stat_type)
        if not values:
            return None
        series = pd.Series(values, dtype=float)
        variance = float(np.var(series.to_numpy()))
        return StatisticalSummary(
            mean=float(series.mean()),
            median=float(series.median()),
            mode=_calculate_mode(values),
            std_dev=math.sqrt(variance),
            variance=variance,
            min=float(series.min()),
            max=float(series.max()),
            q1=float(series.quantile(0.25)),
            q3=float(series.quantile(0.75)),
            sample_size=len(values),
        )

    def calculate_weighted_average(self, games: Sequence[GameRecord], stat_type: str) -> float:
        if not games:
            return 0.0
        recent_count = min(_RECENT_CAP, math.floor(len(games) * _RECENT_SHARE))
        recent = _stat_values(games[:recent_count], stat_type)
        older = _stat_values(games[recent_count:], stat_type)

        recent_avg = float(np.mean(recent)) if recent else 0.0
        older_avg = float(np.mean(older)) if older else recent_avg
        return recent_avg * self.recent_weight + older_avg * (1 - self.recent_weight)

    def calculate_trend(self, games: Sequence[GameRecord], stat_type: str) -> TrendResult:
        """OLS slope of the stat against game index, oldest game first."""
        values = _stat_values(list(reversed(games)), stat_type)
        if len(values) < _TREND_MIN_GAMES:
            return TrendResult()

        from scipy.stats import linregress

        fit = linregress(np.arange(len(values), dtype=float), np.asarray(values, dtype=float))
        slope = float(fit.slope)
        r_value = float(fit.rvalue)
        r_squared = 0.0 if math.isnan(r_value) else r_value ** 2

        direction = TREND_STABLE
        if slope > _TREND_THRESHOLD:
            direction = TREND_INCREASING
        elif slope < -_TREND_THRESHOLD:
            direction = TREND_DECREASING
        return TrendResult(direction=direction, slope=slope, r_squared=r_squared)

    def calculate_over_under(self, games: Sequence[GameRecord], stat_type: str, line: float) -> HistoricalResult:
        values = _stat_values(games, stat_type)
        return HistoricalResult(
            over_count=sum(1 for v in values if v > line),
            under_count=sum(1 for v in values if v < line),
            push_count=sum(1 for v in values if v == line),
            total_games=len(values),
        )

    def calculate_home_away_split(self, games: Sequence[GameRecord], stat_type: str) -> HomeAwaySplit:
        home = _stat_values([g for g in games if g.is_home], stat_type)
        away = _stat_values([g for g in games if not g.is_home], stat_type)
        if not home or not away:
            return HomeAwaySplit()

        home_avg = float(np.mean(home))
        away_avg = float(np.mean(away))
        impact = (home_avg - away_avg) / home_avg if home_avg else 0.0
        return HomeAwaySplit(
            impact=max(0.0, impact),
            home_avg=home_avg,
            away_avg=away_avg,
            home_games=len(home),
            away_games=len(away),
        )

    def adjust_probability(
        self,
        base_probability: float,
        is_home: Optional[bool] = None,
        home_away_impact: float = 0.0,
        trend_direction: Optional[str] = None,
        expected_minutes: Optional[float] = None,
        avg_minutes: Optional[float] = None,
    ) -> Tuple[float, List[Adjustment]]:
        """Apply home court, trend and playing time, in that order, then clamp."""
        probability = base_probability
        adjustments: List[Adjustment] = []

        if is_home is not None and home_away_impact > 0:
            if is_home:
                probability += home_away_impact
                adjustments.append(Adjustment("Home Court", f"+{home_away_impact * 100:.1f}%"))
            else:
                away_impact = home_away_impact * _AWAY_FACTOR
                probability -= away_impact
                adjustments.append(Adjustment("Away Game", f"-{away_impact * 100:.1f}%"))

        if trend_direction == TREND_INCREASING:
            probability += _TREND_ADJUSTMENT
            adjustments.append(Adjustment("Upward Trend", "+5.0%"))
        elif trend_direction == TREND_DECREASING:
            probability -= _TREND_ADJUSTMENT
            adjustments.append(Adjustment("Downward Trend", "-5.0%"))

        if expected_minutes and avg_minutes:
            minutes_impact = (expected_minutes - avg_minutes) / avg_minutes * _MINUTES_FACTOR
            probability += minutes_impact
            if abs(minutes_impact) > _MINUTES_RECORD_THRESHOLD:
                adjustments.append(Adjustment("Playing Time", format_signed_pct(minutes_impact)))

        return clamp(probability), adjustments

    def calculate_consistency(self, summary: Optional[StatisticalSummary]) -> float:
        """1 - coefficient of variation, clamped to [0, 1]."""
        if summary is None or summary.mean == 0:
            return 0.0
        return clamp(1 - summary.std_dev / summary.mean)

    def calculate_confidence(self, sample_size: int, consistency: float) -> ConfidenceResult:
        size_confidence = min(sample_size / _CONFIDENCE_SAMPLE_CAP, 1)
        score = size_confidence * _SAMPLE_WEIGHT + consistency * _CONSISTENCY_WEIGHT
        return ConfidenceResult(
            score=score,
            level=get_confidence_level(score),
            consistency=consistency,
            sample_size=sample_size,
        )

    def analyze_prop(
        self,
        games: Sequence[GameRecord],
        stat_type: str,
        line: float,
        context: Optional[GameContext] = None,
        order: str = "desc",
    ) -> PropAnalysis:
        if order not in ("desc", "asc"):
            raise ValueError(f"order must be 'desc' or 'asc', got {order!r}")
        games = list(reversed(games)) if order == "asc" else list(games)
        context = context or GameContext()

        summary = self.calculate_stats(games, stat_type)
        if summary is None:
            raise InsufficientDataError(
                None, 0, 1, message=f"Insufficient data for analysis of {stat_type}"
            )

        weighted_avg = self.calculate_weighted_average(games, stat_type)
        trend = self.calculate_trend(games, stat_type)
        historical = self.calculate_over_under(games, stat_type, line)

        normal_prob = normal_probability(line, summary.mean, summary.std_dev)
        base_probability = historical.over_rate * _HISTORICAL_WEIGHT + (1 - normal_prob) * _NORMAL_WEIGHT

        splits = self.calculate_home_away_split(games, stat_type)
        minutes_summary = self.calculate_stats(games, "minutes")
        adjusted, adjustments = self.adjust_probability(
            base_probability,
            is_home=context.is_home,
            home_away_impact=splits.impact,
            trend_direction=trend.direction,
            expected_minutes=context.expected_minutes,
            avg_minutes=minutes_summary.mean if minutes_summary else None,
        )

        consistency = self.calculate_consistency(summary)
        confidence = self.calculate_confidence(len(games), consistency)
        logger.debug(
            "Statistical analysis %s %.1f: base=%.3f adjusted=%.3f confidence=%.2f",
            stat_type,
            line,
            base_probability,
            adjusted,
            confidence.score,
        )

        return PropAnalysis(
            stat_type=stat_type,
            line=line,
            over=adjusted,
            under=1 - adjusted,
            base=base_probability,
            summary=summary,
            weighted_avg=weighted_avg,
            historical=historical,
            trend=trend,
            splits=splits,
            confidence=confidence,
            adjustments=adjustments,
        )
