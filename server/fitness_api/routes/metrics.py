"""Fitness metrics API routes."""
from fastapi import APIRouter, Depends, Query

from ..models.metric import CanonicalMetric, MetricInput, StoredMetric
from ..models.scores import DerivedScores
from ..services.dependencies import get_current_user_id, get_metric_store
from ..services.metric_store import MetricStore
from ..services.scores import calculate_scores

router = APIRouter(prefix="/api/metrics", tags=["Metrics"])


@router.get("", response_model=list[StoredMetric])
async def get_metrics(
    days: int = Query(default=30, ge=1, le=365, description="Number of days of history"),
    user_id: str = Depends(get_current_user_id),
    metric_store: MetricStore = Depends(get_metric_store),
):
    """Get the caller's latest metrics, oldest first."""
    return metric_store.get_metrics(user_id, days)


@router.post("", response_model=StoredMetric)
async def save_metric(
    metric: MetricInput,
    user_id: str = Depends(get_current_user_id),
    metric_store: MetricStore = Depends(get_metric_store),
):
    """Add or overwrite a single day's metric for the caller."""
    record = CanonicalMetric(user_id=user_id, **metric.model_dump())
    return metric_store.upsert(record)


@router.get("/scores", response_model=DerivedScores)
async def get_scores(
    days: int = Query(default=30, ge=1, le=365, description="Number of days of history"),
    user_id: str = Depends(get_current_user_id),
    metric_store: MetricStore = Depends(get_metric_store),
):
    """Readiness, strain and trend deltas for the caller's latest metrics."""
    return calculate_scores(metric_store.get_metrics(user_id, days))
