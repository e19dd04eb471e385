"""AI-powered insight API routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..errors import GenerationError
from ..services.dependencies import (
    get_current_user_id,
    get_insight_generator,
    get_insight_store,
)
from ..services.insights import InsightGenerator, InsightStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/insights", tags=["Insights"])

NO_INSIGHTS_MESSAGE = "No insights yet. Sync your Google Fit data to get started!"


@router.get("/latest")
async def get_latest_insight(
    user_id: str = Depends(get_current_user_id),
    insight_store: InsightStore = Depends(get_insight_store),
):
    """Most recent insight, or a placeholder when none exists."""
    insight = insight_store.get_latest(user_id)
    if insight is None:
        return {"content": NO_INSIGHTS_MESSAGE}
    return insight.model_dump(by_alias=True)


@router.post("/generate")
async def generate_insight(
    user_id: str = Depends(get_current_user_id),
    generator: InsightGenerator = Depends(get_insight_generator),
):
    """Generate a new insight from the last week of metrics."""
    try:
        content = await generator.generate(user_id)
    except GenerationError as e:
        logger.error(f"[INSIGHTS] Generation failed for {user_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Insight generation failed: {e}")
    return {"content": content}


@router.patch("/{insight_id}/read")
async def mark_insight_read(
    insight_id: int,
    user_id: str = Depends(get_current_user_id),
    insight_store: InsightStore = Depends(get_insight_store),
):
    """Mark an insight as read."""
    if not insight_store.mark_read(insight_id, user_id):
        raise HTTPException(status_code=404, detail=f"Insight {insight_id} not found")
    return {"success": True}
