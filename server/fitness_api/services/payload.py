"""
Typed view of the Google Fit ``dataset:aggregate`` response.

The raw payload is a nested structure of buckets -> datasets -> points,
where the meaning of each point's ``value`` array depends on its data
type name. parse_aggregate_response() turns it into one DayBucket per
bucket holding a flat list of typed samples. Data types this module does
not know become UnknownSample so new upstream types never break parsing.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Google Fit data type names
STEP_COUNT = "com.google.step_count.delta"
CALORIES_EXPENDED = "com.google.calories.expended"
HEART_RATE = "com.google.heart_rate.bpm"
HEART_RATE_SUMMARY = "com.google.heart_rate.summary"
HEART_RATE_VARIABILITY = "com.google.heart_rate.variability"
SLEEP_SEGMENT = "com.google.sleep.segment"
ACTIVITY_SEGMENT = "com.google.activity.segment"
ACTIVITY_SUMMARY = "com.google.activity.summary"
NUTRITION = "com.google.nutrition"
NUTRITION_SUMMARY = "com.google.nutrition.summary"

NANOS_PER_MINUTE = 60 * 1_000_000_000
MILLIS_PER_MINUTE = 60 * 1000


@dataclass(frozen=True)
class StepSample:
    count: int


@dataclass(frozen=True)
class CalorieSample:
    kcal: float


@dataclass(frozen=True)
class HeartRateSample:
    bpm: float


@dataclass(frozen=True)
class HeartRateSummarySample:
    average: Optional[float] = None
    maximum: Optional[float] = None
    minimum: Optional[float] = None


@dataclass(frozen=True)
class HrvSample:
    value: float


@dataclass(frozen=True)
class SleepSegmentSample:
    stage: int
    start_nanos: int
    end_nanos: int

    @property
    def minutes(self) -> float:
        return max(0, self.end_nanos - self.start_nanos) / NANOS_PER_MINUTE


@dataclass(frozen=True)
class ActivitySample:
    activity_type: int
    duration_minutes: float


@dataclass(frozen=True)
class NutritionSample:
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


@dataclass(frozen=True)
class UnknownSample:
    data_type_name: str


Sample = Union[
    StepSample,
    CalorieSample,
    HeartRateSample,
    HeartRateSummarySample,
    HrvSample,
    SleepSegmentSample,
    ActivitySample,
    NutritionSample,
    UnknownSample,
]


@dataclass
class DayBucket:
    """All samples for one calendar day (UTC)."""

    date: str
    samples: List[Sample] = field(default_factory=list)


@dataclass
class BucketedResult:
    """Parsed aggregate response, one bucket per day in request order."""

    buckets: List[DayBucket] = field(default_factory=list)

    def merge(self, other: "BucketedResult") -> "BucketedResult":
        """Combine two results, appending samples of buckets with the same date."""
        by_date: Dict[str, DayBucket] = {}
        for bucket in self.buckets + other.buckets:
            merged = by_date.setdefault(bucket.date, DayBucket(date=bucket.date))
            merged.samples.extend(bucket.samples)
        return BucketedResult(buckets=sorted(by_date.values(), key=lambda b: b.date))


def millis_to_date(millis: Union[str, int]) -> str:
    """Convert epoch milliseconds to an ISO calendar date in UTC."""
    return datetime.fromtimestamp(int(millis) / 1000, tz=timezone.utc).date().isoformat()


def resolve_data_type(dataset: Dict[str, Any], point: Dict[str, Any]) -> str:
    """
    Find the data type name for a point.

    Aggregated points carry ``dataTypeName``; otherwise it is recovered from
    the data source id, e.g. ``derived:com.google.step_count.delta:...``.
    """
    name = point.get("dataTypeName")
    if name:
        return name
    for part in (dataset.get("dataSourceId") or "").split(":"):
        if part.startswith("com.google."):
            return part
    return ""


def _values(point: Dict[str, Any]) -> List[Dict[str, Any]]:
    return point.get("value") or []


def _int_at(values: List[Dict[str, Any]], index: int) -> Optional[int]:
    if index < len(values) and values[index].get("intVal") is not None:
        return int(values[index]["intVal"])
    return None


def _float_at(values: List[Dict[str, Any]], index: int) -> Optional[float]:
    if index >= len(values):
        return None
    value = values[index]
    if value.get("fpVal") is not None:
        return float(value["fpVal"])
    if value.get("intVal") is not None:
        return float(value["intVal"])
    return None


def _nutrients(values: List[Dict[str, Any]]) -> Dict[str, float]:
    nutrients = {}
    for entry in (values[0].get("mapVal") or []) if values else []:
        inner = entry.get("value") or {}
        if inner.get("fpVal") is not None:
            nutrients[entry.get("key")] = float(inner["fpVal"])
    return nutrients


def parse_point(data_type_name: str, point: Dict[str, Any]) -> Sample:
    """Map one raw point to its typed sample."""
    values = _values(point)

    if data_type_name == STEP_COUNT:
        count = _int_at(values, 0)
        if count is not None:
            return StepSample(count=count)

    elif data_type_name == CALORIES_EXPENDED:
        kcal = _float_at(values, 0)
        if kcal is not None:
            return CalorieSample(kcal=kcal)

    elif data_type_name == HEART_RATE:
        bpm = _float_at(values, 0)
        if bpm is not None:
            return HeartRateSample(bpm=bpm)

    elif data_type_name == HEART_RATE_SUMMARY:
        # value order: average, max, min
        return HeartRateSummarySample(
            average=_float_at(values, 0),
            maximum=_float_at(values, 1),
            minimum=_float_at(values, 2),
        )

    elif data_type_name == HEART_RATE_VARIABILITY:
        hrv = _float_at(values, 0)
        if hrv is not None:
            return HrvSample(value=hrv)

    elif data_type_name == SLEEP_SEGMENT:
        stage = _int_at(values, 0)
        if stage is not None:
            return SleepSegmentSample(
                stage=stage,
                start_nanos=int(point.get("startTimeNanos", 0)),
                end_nanos=int(point.get("endTimeNanos", 0)),
            )

    elif data_type_name == ACTIVITY_SEGMENT:
        activity = _int_at(values, 0)
        if activity is not None:
            start = int(point.get("startTimeNanos", 0))
            end = int(point.get("endTimeNanos", 0))
            return ActivitySample(
                activity_type=activity,
                duration_minutes=max(0, end - start) / NANOS_PER_MINUTE,
            )

    elif data_type_name == ACTIVITY_SUMMARY:
        # value order: activity type, duration (ms), number of segments
        activity = _int_at(values, 0)
        duration_ms = _int_at(values, 1)
        if activity is not None and duration_ms is not None:
            return ActivitySample(
                activity_type=activity,
                duration_minutes=duration_ms / MILLIS_PER_MINUTE,
            )

    elif data_type_name in (NUTRITION, NUTRITION_SUMMARY):
        nutrients = _nutrients(values)
        return NutritionSample(
            protein=nutrients.get("protein"),
            carbs=nutrients.get("carbs.total"),
            fat=nutrients.get("fat.total"),
        )

    return UnknownSample(data_type_name=data_type_name)


def parse_aggregate_response(payload: Dict[str, Any]) -> BucketedResult:
    """Parse a Google Fit aggregate response into typed day buckets."""
    buckets = []
    for raw_bucket in payload.get("bucket") or []:
        start_millis = raw_bucket.get("startTimeMillis")
        if start_millis is None:
            logger.debug("[GOOGLE FIT] Skipping bucket without startTimeMillis")
            continue

        day = DayBucket(date=millis_to_date(start_millis))
        for dataset in raw_bucket.get("dataset") or []:
            for point in dataset.get("point") or []:
                day.samples.append(parse_point(resolve_data_type(dataset, point), point))
        buckets.append(day)

    return BucketedResult(buckets=buckets)
