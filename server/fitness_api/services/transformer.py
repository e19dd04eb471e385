"""
Google Fit day buckets -> canonical per-day metrics.

Each bucket is folded sample by sample into a DayAccumulator, then the
derived fields are filled in from fallbacks.py. Days with no signal at
all are dropped.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..models.metric import CanonicalMetric
from .fallbacks import (
    activity_level,
    estimate_hrv_from_rhr,
    estimate_macros,
    round_half_up,
    score_recovery,
    score_sleep,
    score_workout_intensity,
)
from .payload import (
    ActivitySample,
    BucketedResult,
    CalorieSample,
    DayBucket,
    HeartRateSample,
    HeartRateSummarySample,
    HrvSample,
    NutritionSample,
    Sample,
    SleepSegmentSample,
    StepSample,
)

logger = logging.getLogger(__name__)

# Google Fit sleep stage codes
SLEEP_STAGE_DEEP = 5

# Google Fit activity type codes counted as exercise
EXERCISE_ACTIVITY_TYPES = frozenset({
    1,    # biking
    7,    # walking
    8,    # running
    9,    # aerobics
    15,   # mountain biking
    16,   # road biking
    17,   # spinning
    18,   # stationary biking
    19,   # utility biking
    25,   # elliptical
    35,   # hiking
    56,   # jogging
    57,   # sand running
    58,   # treadmill running
    80,   # strength training
    82,   # swimming
    83,   # open water swimming
    84,   # pool swimming
    93,   # fitness walking
    94,   # nordic walking
    95,   # treadmill walking
    100,  # yoga
    113,  # crossfit
    114,  # HIIT
})


@dataclass
class DayAccumulator:
    """Running totals for one day while its samples are folded in."""

    date: str
    steps: int = 0
    calories: float = 0.0
    min_heart_rate: Optional[float] = None
    hrv_total: float = 0.0
    hrv_count: int = 0
    sleep_minutes: float = 0.0
    deep_sleep_minutes: float = 0.0
    has_sleep: bool = False
    activity_minutes: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    has_nutrition: bool = False

    def _fold_heart_rate(self, bpm: Optional[float]) -> None:
        if bpm is None or bpm <= 0:
            return
        if self.min_heart_rate is None or bpm < self.min_heart_rate:
            self.min_heart_rate = bpm

    def add(self, sample: Sample) -> None:
        if isinstance(sample, StepSample):
            self.steps += max(0, sample.count)
        elif isinstance(sample, CalorieSample):
            self.calories += max(0.0, sample.kcal)
        elif isinstance(sample, HeartRateSample):
            self._fold_heart_rate(sample.bpm)
        elif isinstance(sample, HeartRateSummarySample):
            # minimum is the rest-state proxy; average only when no minimum
            self._fold_heart_rate(
                sample.minimum if sample.minimum is not None else sample.average
            )
        elif isinstance(sample, HrvSample):
            self.hrv_total += sample.value
            self.hrv_count += 1
        elif isinstance(sample, SleepSegmentSample):
            self.has_sleep = True
            self.sleep_minutes += sample.minutes
            if sample.stage == SLEEP_STAGE_DEEP:
                self.deep_sleep_minutes += sample.minutes
        elif isinstance(sample, ActivitySample):
            if sample.activity_type in EXERCISE_ACTIVITY_TYPES:
                self.activity_minutes += sample.duration_minutes
        elif isinstance(sample, NutritionSample):
            for name in ("protein", "carbs", "fat"):
                value = getattr(sample, name)
                if value is not None:
                    setattr(self, name, getattr(self, name) + value)
                    self.has_nutrition = True
        # UnknownSample: ignored

    def to_metric(self, user_id: str) -> Optional[CanonicalMetric]:
        """Build the canonical record, or None if the day carries no signal."""
        calories = round_half_up(self.calories)
        rhr = round_half_up(self.min_heart_rate) if self.min_heart_rate is not None else None
        total_sleep = round_half_up(self.sleep_minutes) if self.has_sleep else None
        deep_sleep = round_half_up(self.deep_sleep_minutes) if self.has_sleep else None

        if not (self.steps > 0 or calories > 0 or (total_sleep or 0) > 0 or rhr is not None):
            return None

        activity_minutes = round_half_up(self.activity_minutes) if self.activity_minutes > 0 else None
        workout_intensity = score_workout_intensity(activity_minutes, calories, self.steps)

        if self.hrv_count:
            hrv = round_half_up(self.hrv_total / self.hrv_count)
        else:
            hrv = estimate_hrv_from_rhr(rhr)

        if self.has_nutrition:
            protein, carbs, fats = (
                round_half_up(self.protein),
                round_half_up(self.carbs),
                round_half_up(self.fat),
            )
        else:
            protein, carbs, fats = estimate_macros(
                calories, activity_level(self.steps, workout_intensity)
            )

        return CanonicalMetric(
            user_id=user_id,
            date=self.date,
            steps=self.steps,
            calories=calories,
            rhr=rhr,
            hrv=hrv,
            total_sleep_minutes=total_sleep,
            deep_sleep_minutes=deep_sleep,
            activity_minutes=activity_minutes,
            sleep_score=score_sleep(total_sleep, deep_sleep),
            recovery_score=score_recovery(rhr),
            workout_intensity=workout_intensity,
            protein=protein,
            carbs=carbs,
            fats=fats,
        )


def transform_bucket(bucket: DayBucket, user_id: str) -> Optional[CanonicalMetric]:
    """Fold one day's samples into a canonical metric."""
    acc = DayAccumulator(date=bucket.date)
    for sample in bucket.samples:
        acc.add(sample)
    return acc.to_metric(user_id)


def transform(result: BucketedResult, user_id: str) -> List[CanonicalMetric]:
    """Transform every non-empty day of an aggregate result."""
    metrics = []
    for bucket in result.buckets:
        metric = transform_bucket(bucket, user_id)
        if metric is None:
            logger.debug(f"[TRANSFORM] Dropping empty day {bucket.date}")
            continue
        metrics.append(metric)
    logger.info(f"[TRANSFORM] {len(metrics)} of {len(result.buckets)} days carried data")
    return metrics
