"""Confidence scoring domain entities."""

from dataclasses import dataclass
from typing import Literal

ConfidenceLevel = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class ConfidenceFactors:
    """Data-quality signals behind an insight. Recomputed per request."""

    data_points: int = 0
    data_sources: int = 0
    time_range_days: int = 0
    metric_variety: int = 0
    has_historical_data: bool = False
    context_available: bool = False


@dataclass(frozen=True)
class ConfidenceResult:
    """Score, derived label and show decision for one set of factors."""

    score: float
    level: ConfidenceLevel
    shown: bool
    factors: ConfidenceFactors
