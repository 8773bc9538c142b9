from datetime import date

import pytest

from insight_cache.entities import ConfidenceFactors
from insight_cache.services import ConfidenceScorer


@pytest.fixture
def scorer():
    return ConfidenceScorer(show_threshold=0.5, high_threshold=0.8)


def test_full_signal_scores_one(scorer):
    factors = ConfidenceFactors(
        data_points=35,
        data_sources=3,
        time_range_days=30,
        metric_variety=5,
        has_historical_data=True,
        context_available=True,
    )

    result = scorer.evaluate(factors)

    assert result.score == 1.0
    assert result.level == "high"
    assert result.shown is True


def test_no_signal_is_base_score(scorer):
    result = scorer.evaluate(ConfidenceFactors())
    assert result.score == 0.3
    assert result.level == "low"
    assert result.shown is False


@pytest.mark.parametrize(
    "factors,expected",
    [
        (ConfidenceFactors(data_points=7), 0.35),
        (ConfidenceFactors(data_points=14), 0.45),
        (ConfidenceFactors(data_sources=1), 0.35),
        (ConfidenceFactors(data_sources=2), 0.4),
        (ConfidenceFactors(time_range_days=14), 0.4),
        (ConfidenceFactors(metric_variety=3), 0.35),
        (ConfidenceFactors(data_points=14, data_sources=2, context_available=True), 0.65),
    ],
)
def test_tier_bonuses(scorer, factors, expected):
    assert scorer.score(factors) == pytest.approx(expected)


def test_more_data_points_never_lower_the_score(scorer):
    scores = [scorer.score(ConfidenceFactors(data_points=n, data_sources=1)) for n in range(5, 31)]
    assert scores == sorted(scores)


def test_score_is_clamped(scorer):
    factors = ConfidenceFactors(
        data_points=10_000,
        data_sources=50,
        time_range_days=365,
        metric_variety=40,
        has_historical_data=True,
        context_available=True,
    )
    assert 0.0 <= scorer.score(factors) <= 1.0


def test_levels(scorer):
    assert scorer.level(0.8) == "high"
    assert scorer.level(0.5) == "medium"
    assert scorer.level(0.49) == "low"
    assert scorer.should_show(0.5)
    assert not scorer.should_show(0.49)


def test_thresholds_must_be_ordered():
    with pytest.raises(ValueError):
        ConfidenceScorer(show_threshold=0.9, high_threshold=0.8)


def test_extract_factors_from_metrics_payload():
    metrics = {
        "daily": [{"sessions": i} for i in range(20)],
        "sessions": 1000,
        "conversions": 40,
        "metadata": {"sources": ["ga4", "meta"]},
    }

    factors = ConfidenceScorer.extract_factors(
        metrics,
        context_count=2,
        date_range={"start": "2026-01-01", "end": "2026-01-31"},
    )

    assert factors == ConfidenceFactors(
        data_points=20,
        data_sources=2,
        time_range_days=30,
        metric_variety=2,
        has_historical_data=True,
        context_available=True,
    )


def test_extract_factors_defaults():
    factors = ConfidenceScorer.extract_factors({"sessions": 10, "clicks": 4}, context_count=0)

    assert factors.data_points == 2
    assert factors.data_sources == 1
    assert factors.time_range_days == 30
    assert factors.has_historical_data is True
    assert factors.context_available is False


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2026-01-01T23:00:00", "2026-01-08T01:00:00", 6),
        ("2026-01-01T00:00:00Z", "2026-01-15T00:00:00Z", 14),
        ("2026-01-01T00:00:00+02:00", "2026-01-07T23:00:00Z", 7),
        (date(2026, 1, 1), "2026-01-31T12:00:00Z", 30),
    ],
)
def test_time_range_counts_whole_elapsed_days(start, end, expected):
    factors = ConfidenceScorer.extract_factors(
        {"sessions": 10},
        context_count=0,
        date_range={"start": start, "end": end},
    )

    assert factors.time_range_days == expected
    assert factors.has_historical_data is (expected > 7)
