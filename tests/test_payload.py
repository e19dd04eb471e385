"""
Unit tests for parsing Google Fit aggregate responses.

Usage:
    pytest tests/test_payload.py -v
"""
from datetime import datetime, timezone

from server.fitness_api.services.payload import (
    ActivitySample,
    BucketedResult,
    DayBucket,
    HeartRateSummarySample,
    NutritionSample,
    SleepSegmentSample,
    StepSample,
    UnknownSample,
    millis_to_date,
    parse_aggregate_response,
    parse_point,
    resolve_data_type,
)


def day_start_millis(date: str) -> int:
    return int(datetime.fromisoformat(date).replace(tzinfo=timezone.utc).timestamp() * 1000)


class TestDataTypeResolution:
    """Test how a point's data type name is found."""

    def test_point_name_wins(self):
        point = {"dataTypeName": "com.google.step_count.delta"}
        dataset = {"dataSourceId": "derived:com.google.calories.expended:x"}
        assert resolve_data_type(dataset, point) == "com.google.step_count.delta"

    def test_recovered_from_data_source_id(self):
        dataset = {
            "dataSourceId": "derived:com.google.heart_rate.summary:com.google.android.gms:merged"
        }
        assert resolve_data_type(dataset, {}) == "com.google.heart_rate.summary"

    def test_unresolvable(self):
        assert resolve_data_type({"dataSourceId": "raw:something"}, {}) == ""


class TestParsePoint:
    """Test mapping raw points to typed samples."""

    def test_step_count(self, fit):
        assert parse_point("com.google.step_count.delta", fit.steps(1234)) == StepSample(1234)

    def test_heart_rate_summary_order(self, fit):
        sample = parse_point(
            "com.google.heart_rate.summary", fit.heart_rate_summary(70.0, 150.0, 52.0)
        )
        assert sample == HeartRateSummarySample(average=70.0, maximum=150.0, minimum=52.0)

    def test_sleep_segment_minutes(self, fit):
        sample = parse_point("com.google.sleep.segment", fit.sleep(5, 30, 120))
        assert isinstance(sample, SleepSegmentSample)
        assert sample.stage == 5
        assert sample.minutes == 90

    def test_activity_summary_duration(self, fit):
        sample = parse_point("com.google.activity.summary", fit.activity(8, 45))
        assert sample == ActivitySample(activity_type=8, duration_minutes=45)

    def test_activity_segment_uses_point_span(self, fit):
        point = fit.point("com.google.activity.segment", [{"intVal": 7}], 60, 90)
        sample = parse_point("com.google.activity.segment", point)
        assert sample == ActivitySample(activity_type=7, duration_minutes=30)

    def test_nutrition_map(self, fit):
        sample = parse_point("com.google.nutrition.summary", fit.nutrition(protein=100.5, fat=60.0))
        assert sample == NutritionSample(protein=100.5, carbs=None, fat=60.0)

    def test_unknown_type(self, fit):
        point = fit.point("com.google.weight", [{"fpVal": 80.0}])
        assert parse_point("com.google.weight", point) == UnknownSample("com.google.weight")

    def test_known_type_without_value(self):
        assert isinstance(parse_point("com.google.step_count.delta", {"value": []}), UnknownSample)


class TestParseAggregateResponse:
    """Test bucket-level parsing."""

    def test_one_bucket_per_day(self, fit):
        payload = fit.response(
            fit.bucket("2024-01-01", fit.steps(100), fit.calories(50.0)),
            fit.bucket("2024-01-02"),
        )
        result = parse_aggregate_response(payload)

        assert [b.date for b in result.buckets] == ["2024-01-01", "2024-01-02"]
        assert len(result.buckets[0].samples) == 2
        assert result.buckets[1].samples == []

    def test_bucket_without_start_is_skipped(self, fit):
        payload = fit.response(fit.bucket("2024-01-01", fit.steps(10)))
        payload["bucket"].append({"dataset": []})
        assert len(parse_aggregate_response(payload).buckets) == 1

    def test_empty_payload(self):
        assert parse_aggregate_response({}).buckets == []

    def test_millis_to_date_is_utc(self):
        assert millis_to_date(day_start_millis("2024-03-10")) == "2024-03-10"
        assert millis_to_date(str(day_start_millis("2024-03-10") + 86_399_999)) == "2024-03-10"


class TestMerge:
    """Test combining primary and optional fetches."""

    def test_samples_grouped_by_date(self):
        first = BucketedResult([DayBucket("2024-01-02", [StepSample(1)]), DayBucket("2024-01-01")])
        second = BucketedResult([DayBucket("2024-01-02", [StepSample(2)])])
        merged = first.merge(second)

        assert [b.date for b in merged.buckets] == ["2024-01-01", "2024-01-02"]
        assert merged.buckets[1].samples == [StepSample(1), StepSample(2)]
