"""
Pytest fixtures for Fitness Sync API tests.
"""
from datetime import datetime, timezone

import pytest
from dotenv import load_dotenv

from server.fitness_api.config import Settings
from server.fitness_api.database import DatabaseManager
from server.fitness_api.models.metric import CanonicalMetric
from server.fitness_api.services.credentials import TokenStore
from server.fitness_api.services.insights import InsightStore
from server.fitness_api.services.metric_store import MetricStore

# Load environment variables
load_dotenv()


# ============================================================================
# Google Fit payload builders
# ============================================================================

NANOS_PER_MINUTE = 60 * 1_000_000_000


def day_start_millis(date: str) -> int:
    """Midnight UTC of an ISO date, in epoch milliseconds."""
    day = datetime.fromisoformat(date).replace(tzinfo=timezone.utc)
    return int(day.timestamp() * 1000)


class AggregatePayloadBuilder:
    """Builds raw Google Fit ``dataset:aggregate`` responses."""

    @staticmethod
    def point(data_type: str, values: list, start_minute: int = 0, end_minute: int = 0,
              date: str = "2024-01-01") -> dict:
        base = day_start_millis(date) * 1_000_000
        return {
            "dataTypeName": data_type,
            "startTimeNanos": str(base + start_minute * NANOS_PER_MINUTE),
            "endTimeNanos": str(base + end_minute * NANOS_PER_MINUTE),
            "value": values,
        }

    @staticmethod
    def steps(count: int) -> dict:
        return AggregatePayloadBuilder.point("com.google.step_count.delta", [{"intVal": count}])

    @staticmethod
    def calories(kcal: float) -> dict:
        return AggregatePayloadBuilder.point("com.google.calories.expended", [{"fpVal": kcal}])

    @staticmethod
    def heart_rate(bpm: float) -> dict:
        return AggregatePayloadBuilder.point("com.google.heart_rate.bpm", [{"fpVal": bpm}])

    @staticmethod
    def heart_rate_summary(average=None, maximum=None, minimum=None) -> dict:
        values = [{"fpVal": v} if v is not None else {} for v in (average, maximum, minimum)]
        return AggregatePayloadBuilder.point("com.google.heart_rate.summary", values)

    @staticmethod
    def hrv(value: float) -> dict:
        return AggregatePayloadBuilder.point("com.google.heart_rate.variability", [{"fpVal": value}])

    @staticmethod
    def sleep(stage: int, start_minute: int, end_minute: int) -> dict:
        return AggregatePayloadBuilder.point(
            "com.google.sleep.segment", [{"intVal": stage}], start_minute, end_minute
        )

    @staticmethod
    def activity(activity_type: int, minutes: int) -> dict:
        return AggregatePayloadBuilder.point(
            "com.google.activity.summary",
            [{"intVal": activity_type}, {"intVal": minutes * 60 * 1000}, {"intVal": 1}],
        )

    @staticmethod
    def nutrition(protein=None, carbs=None, fat=None) -> dict:
        entries = []
        for key, value in (("protein", protein), ("carbs.total", carbs), ("fat.total", fat)):
            if value is not None:
                entries.append({"key": key, "value": {"fpVal": value}})
        return AggregatePayloadBuilder.point("com.google.nutrition.summary", [{"mapVal": entries}])

    @staticmethod
    def bucket(date: str, *points: dict) -> dict:
        start = day_start_millis(date)
        return {
            "startTimeMillis": str(start),
            "endTimeMillis": str(start + 86_400_000),
            "dataset": [
                {
                    "dataSourceId": f"derived:{p['dataTypeName']}:com.google.android.gms:aggregated",
                    "point": [p],
                }
                for p in points
            ],
        }

    @staticmethod
    def response(*buckets: dict) -> dict:
        return {"bucket": list(buckets)}


@pytest.fixture
def fit():
    """Builder for raw Google Fit aggregate payloads."""
    return AggregatePayloadBuilder()


# ============================================================================
# Storage fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings with test credentials and endpoints."""
    return Settings(
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        google_token_url="https://oauth.test/token",
        google_fit_base_url="https://fit.test/fitness/v1",
        openai_api_key="test-openai-key",
        openai_base_url="https://llm.test/v1",
    )


@pytest.fixture
def db(tmp_path):
    """A fresh SQLite database with the schema applied."""
    manager = DatabaseManager(str(tmp_path / "fitness_test.db"))
    manager.init_schema()
    return manager


@pytest.fixture
def metric_store(db):
    return MetricStore(db)


@pytest.fixture
def token_store(db):
    return TokenStore(db)


@pytest.fixture
def insight_store(db):
    return InsightStore(db)


@pytest.fixture
def make_metric():
    """Factory for CanonicalMetric records with sensible defaults."""

    def _make(date: str = "2024-01-01", user_id: str = "user-1", **fields) -> CanonicalMetric:
        values = {"steps": 5000, "calories": 2000}
        values.update(fields)
        return CanonicalMetric(user_id=user_id, date=date, **values)

    return _make
