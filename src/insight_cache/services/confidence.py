"""Confidence scoring for generated insights.

Score = 0.3 base + piecewise bonuses, clamped to [0, 1]:

    data points      >=30: 0.25   >=14: 0.15   >=7: 0.05
    data sources     >=3:  0.20   >=2:  0.10   >=1: 0.05
    time range days  >=30: 0.15   >=14: 0.10   >=7: 0.05
    metric variety   >=5:  0.10   >=3:  0.05
    historical data        0.10
    context available      0.10

The scorer only reports; whether a low-confidence insight is hidden is the
caller's decision.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from insight_cache.config import settings
from insight_cache.entities import ConfidenceFactors, ConfidenceLevel, ConfidenceResult

BASE_SCORE = 0.3
DEFAULT_TIME_RANGE_DAYS = 30
NON_METRIC_KEYS = frozenset({"daily", "metadata", "dateRange"})

# (minimum, bonus), checked top to bottom
DATA_POINT_TIERS = ((30, 0.25), (14, 0.15), (7, 0.05))
DATA_SOURCE_TIERS = ((3, 0.2), (2, 0.1), (1, 0.05))
TIME_RANGE_TIERS = ((30, 0.15), (14, 0.1), (7, 0.05))
METRIC_VARIETY_TIERS = ((5, 0.1), (3, 0.05))
HISTORICAL_BONUS = 0.1
CONTEXT_BONUS = 0.1


def _tier_bonus(value: int, tiers: tuple[tuple[int, float], ...]) -> float:
    for minimum, bonus in tiers:
        if value >= minimum:
            return bonus
    return 0.0


def _as_datetime(value: str | date | datetime) -> datetime:
    """Parse an ISO instant; values without an offset are taken as UTC."""
    if isinstance(value, str):
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)
    elif not isinstance(value, datetime):
        value = datetime.combine(value, time())
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class ConfidenceScorer:
    def __init__(
        self,
        show_threshold: float | None = None,
        high_threshold: float | None = None,
    ) -> None:
        self._show_threshold = settings.confidence_show_threshold if show_threshold is None else show_threshold
        self._high_threshold = settings.confidence_high_threshold if high_threshold is None else high_threshold
        if not 0 <= self._show_threshold <= self._high_threshold <= 1:
            raise ValueError("thresholds must satisfy 0 <= show <= high <= 1")

    def score(self, factors: ConfidenceFactors) -> float:
        score = BASE_SCORE
        score += _tier_bonus(factors.data_points, DATA_POINT_TIERS)
        score += _tier_bonus(factors.data_sources, DATA_SOURCE_TIERS)
        score += _tier_bonus(factors.time_range_days, TIME_RANGE_TIERS)
        score += _tier_bonus(factors.metric_variety, METRIC_VARIETY_TIERS)
        if factors.has_historical_data:
            score += HISTORICAL_BONUS
        if factors.context_available:
            score += CONTEXT_BONUS
        # round away float drift so 0.3 + ... + 0.1 lands exactly on 1.0
        return round(min(max(score, 0.0), 1.0), 4)

    def level(self, score: float) -> ConfidenceLevel:
        if score >= self._high_threshold:
            return "high"
        if score >= self._show_threshold:
            return "medium"
        return "low"

    def should_show(self, score: float) -> bool:
        return score >= self._show_threshold

    def evaluate(self, factors: ConfidenceFactors) -> ConfidenceResult:
        score = self.score(factors)
        return ConfidenceResult(
            score=score,
            level=self.level(score),
            shown=self.should_show(score),
            factors=factors,
        )

    @staticmethod
    def extract_factors(
        metrics: dict[str, Any],
        context_count: int,
        date_range: dict[str, Any] | None = None,
    ) -> ConfidenceFactors:
        """Derive factors from a metrics payload.

        Args:
            metrics: Metric payload; ``daily`` (list of rows) and
                ``metadata.sources`` are used when present
            context_count: How many context snippets were retrieved
            date_range: ``{"start": ..., "end": ...}`` as ISO strings or dates

        Returns:
            The derived ConfidenceFactors
        """
        daily = metrics.get("daily")
        data_points = len(daily) if isinstance(daily, list) else len(metrics)
        metric_variety = sum(1 for key in metrics if key not in NON_METRIC_KEYS)

        time_range = DEFAULT_TIME_RANGE_DAYS
        if date_range:
            # whole days elapsed, rounded down
            time_range = (_as_datetime(date_range["end"]) - _as_datetime(date_range["start"])) // timedelta(days=1)

        metadata = metrics.get("metadata")
        sources = metadata.get("sources") if isinstance(metadata, dict) else None
        data_sources = len(sources) if sources else 1

        return ConfidenceFactors(
            data_points=data_points,
            data_sources=data_sources,
            time_range_days=time_range,
            metric_variety=metric_variety,
            has_historical_data=time_range > 7,
            context_available=context_count > 0,
        )

    @property
    def show_threshold(self) -> float:
        return self._show_threshold

    @property
    def high_threshold(self) -> float:
        return self._high_threshold
