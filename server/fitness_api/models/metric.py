"""Canonical per-day fitness metric models."""
from typing import Optional

from pydantic import Field

from .base import CamelModel

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class MetricInput(CamelModel):
    """Metric fields a client may submit for its own user."""

    date: str = Field(pattern=ISO_DATE_PATTERN)
    steps: int = Field(default=0, ge=0)
    calories: int = Field(default=0, ge=0)
    rhr: Optional[int] = None
    hrv: Optional[int] = None
    total_sleep_minutes: Optional[int] = Field(default=None, ge=0)
    deep_sleep_minutes: Optional[int] = Field(default=None, ge=0)
    activity_minutes: Optional[int] = Field(default=None, ge=0)
    sleep_score: Optional[int] = Field(default=None, ge=0, le=100)
    recovery_score: Optional[int] = Field(default=None, ge=0, le=100)
    workout_intensity: Optional[int] = Field(default=None, ge=0, le=100)
    protein: int = Field(default=0, ge=0)
    carbs: int = Field(default=0, ge=0)
    fats: int = Field(default=0, ge=0)


class CanonicalMetric(MetricInput):
    """One normalized record per user per calendar day."""

    user_id: str


class StoredMetric(CanonicalMetric):
    """A canonical metric as persisted in the metric store."""

    id: int
    created_at: str
    updated_at: str
