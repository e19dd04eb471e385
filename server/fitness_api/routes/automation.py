"""Automation API routes.

Provides endpoints for scheduled Google Fit synchronization.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..services.dependencies import get_current_user_id, get_sync_scheduler
from ..services.sync_scheduler import SyncScheduler

router = APIRouter(
    prefix="/api/automation",
    tags=["Automation"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get("/status")
async def get_scheduler_status(scheduler: SyncScheduler = Depends(get_sync_scheduler)):
    """
    Get the sync scheduler status.

    Returns whether periodic syncing is running, its interval, and the
    per-user outcomes of the last pass.
    """
    return scheduler.get_status()


@router.post("/scheduler/start")
async def start_scheduler(
    interval_hours: Optional[int] = Query(
        None,
        ge=1,
        le=168,
        description="Hours between automatic sync passes (defaults to the configured interval)"
    ),
    scheduler: SyncScheduler = Depends(get_sync_scheduler),
):
    """
    Start the background sync scheduler.

    Once started, every connected user is re-synced over the default range
    at the specified interval.
    """
    scheduler.start_scheduler(interval_hours=interval_hours)
    return {
        "status": "started",
        "interval_hours": scheduler.interval_hours,
        "message": f"Scheduler started. Users will be synced every {scheduler.interval_hours} hours.",
    }


@router.post("/scheduler/stop")
async def stop_scheduler(scheduler: SyncScheduler = Depends(get_sync_scheduler)):
    """
    Stop the background sync scheduler.

    Does not affect a pass that is already running.
    """
    scheduler.stop_scheduler()
    return {
        "status": "stopped",
        "message": "Scheduler stopped. No more automatic syncs will run.",
    }


@router.post("/run")
async def run_sync_pass(scheduler: SyncScheduler = Depends(get_sync_scheduler)):
    """Run one sync pass over all connected users now."""
    outcomes = await scheduler.run_once()
    return {
        "status": "completed",
        "users": len(outcomes),
        "outcomes": [o.to_dict() for o in outcomes],
    }
