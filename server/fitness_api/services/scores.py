"""Derived wellness scores for the dashboard read path.

Pure functions of an oldest-first sequence of metrics. Nothing here is
cached; callers recompute whenever the sequence changes.
"""
from typing import Optional, Sequence

from ..models.metric import CanonicalMetric
from ..models.scores import DerivedScores, TrendDeltas
from .fallbacks import round_half_up

DEFAULT_SLEEP_SCORE = 70
DEFAULT_RECOVERY_SCORE = 70
DEFAULT_HRV = 50

READINESS_WEIGHTS = {"sleep": 0.4, "recovery": 0.3, "hrv": 0.3}
MAX_READINESS = 100
MAX_STRAIN = 20


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


def readiness_score(metric: CanonicalMetric) -> int:
    """Weighted blend of sleep, recovery and HRV, capped at 100."""
    raw = (
        READINESS_WEIGHTS["sleep"] * _or_default(metric.sleep_score, DEFAULT_SLEEP_SCORE)
        + READINESS_WEIGHTS["recovery"] * _or_default(metric.recovery_score, DEFAULT_RECOVERY_SCORE)
        + READINESS_WEIGHTS["hrv"] * _or_default(metric.hrv, DEFAULT_HRV)
    )
    return round_half_up(min(MAX_READINESS, raw))


def strain_score(metric: CanonicalMetric) -> int:
    """Workout intensity plus a point per thousand steps, capped at 20."""
    raw = 0.1 * _or_default(metric.workout_intensity, 0) + _or_default(metric.steps, 0) / 1000
    return round_half_up(min(MAX_STRAIN, raw))


def _delta(latest: Optional[int], previous: Optional[int]) -> Optional[int]:
    if latest is None or previous is None:
        return None
    return latest - previous


def calculate_scores(metrics: Sequence[CanonicalMetric]) -> DerivedScores:
    """Compute readiness, strain and day-over-day trends from the latest records."""
    if not metrics:
        return DerivedScores()

    latest = metrics[-1]
    previous = metrics[-2] if len(metrics) > 1 else None

    readiness = readiness_score(latest)
    readiness_change = readiness - readiness_score(previous) if previous is not None else None

    trends = TrendDeltas()
    if previous is not None:
        trends = TrendDeltas(
            rhr=_delta(latest.rhr, previous.rhr),
            sleep_score=_delta(latest.sleep_score, previous.sleep_score),
            steps=_delta(latest.steps, previous.steps),
        )

    return DerivedScores(
        readiness_score=readiness,
        readiness_change=readiness_change,
        strain_score=strain_score(latest),
        latest_date=latest.date,
        trends=trends,
    )
