"""Derived wellness score models."""
from typing import Optional

from pydantic import Field

from .base import CamelModel


class TrendDeltas(CamelModel):
    """Day-over-day changes between the two most recent records."""

    rhr: Optional[int] = None
    sleep_score: Optional[int] = None
    steps: Optional[int] = None


class DerivedScores(CamelModel):
    """Scores computed from an oldest-first window of metrics."""

    readiness_score: Optional[int] = None
    readiness_change: Optional[int] = None
    strain_score: Optional[int] = None
    latest_date: Optional[str] = None
    trends: TrendDeltas = Field(default_factory=TrendDeltas)
