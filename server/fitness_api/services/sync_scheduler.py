"""
Scheduled Google Fit synchronization.

Periodically re-syncs every user that has stored credentials, one user
after another, using the same SyncService as the on-demand endpoint.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .sync import SyncService

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of syncing one user during a scheduled pass."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UserSyncOutcome:
    """Result of one user's sync within a scheduled pass."""

    user_id: str
    status: RunStatus
    synced: int = 0
    error_type: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "synced": self.synced,
            "error_type": self.error_type,
            "error": self.error,
        }


class SyncScheduler:
    """
    Manages scheduled and on-demand sync passes over all connected users.

    Features:
    - Manual trigger for an immediate pass
    - Background scheduling with threading.Timer
    - Per-user outcomes of the last pass
    """

    def __init__(self, sync_service: SyncService = None, interval_hours: int = 24):
        self.sync_service = sync_service or SyncService()
        self.interval_hours = interval_hours

        self._lock = threading.Lock()
        self._last_run_at: Optional[datetime] = None
        self._last_outcomes: List[UserSyncOutcome] = []
        self._pass_running = False

        self._scheduler_timer: Optional[threading.Timer] = None
        self._scheduler_running = False

    async def run_once(self) -> List[UserSyncOutcome]:
        """Sync every connected user over the default range."""
        with self._lock:
            if self._pass_running:
                logger.warning("[SCHEDULER] Pass already running, skipping")
                return list(self._last_outcomes)
            self._pass_running = True

        outcomes = []
        try:
            user_ids = self.sync_service.token_store.list_user_ids()
            logger.info(f"[SCHEDULER] Starting sync pass for {len(user_ids)} users")

            for user_id in user_ids:
                try:
                    result = await self.sync_service.sync(user_id)
                    outcomes.append(
                        UserSyncOutcome(user_id, RunStatus.COMPLETED, synced=result.synced)
                    )
                except Exception as e:
                    logger.error(f"[SCHEDULER] Sync failed for {user_id}: {e}")
                    outcomes.append(
                        UserSyncOutcome(
                            user_id,
                            RunStatus.FAILED,
                            error_type=getattr(e, "error_type", type(e).__name__),
                            error=str(e),
                        )
                    )
        finally:
            with self._lock:
                self._pass_running = False
                self._last_run_at = datetime.now(timezone.utc)
                self._last_outcomes = outcomes

        return outcomes

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status."""
        with self._lock:
            return {
                "scheduler_running": self._scheduler_running,
                "interval_hours": self.interval_hours,
                "pass_running": self._pass_running,
                "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
                "last_outcomes": [o.to_dict() for o in self._last_outcomes],
            }

    def start_scheduler(self, interval_hours: Optional[int] = None) -> None:
        """
        Start background sync passes.

        Args:
            interval_hours: Hours between passes (defaults to the configured interval)
        """
        if self._scheduler_running:
            logger.warning("[SCHEDULER] Scheduler already running")
            return

        if interval_hours:
            self.interval_hours = interval_hours
        self._scheduler_running = True
        self._schedule_next()
        logger.info(f"[SCHEDULER] Started with interval={self.interval_hours}h")

    def stop_scheduler(self) -> None:
        """Stop the background scheduler."""
        self._scheduler_running = False
        if self._scheduler_timer:
            self._scheduler_timer.cancel()
            self._scheduler_timer = None
        logger.info("[SCHEDULER] Stopped")

    def _schedule_next(self) -> None:
        """Schedule the next sync pass."""
        if not self._scheduler_running:
            return

        def run_and_reschedule():
            if not self._scheduler_running:
                return

            # Run the async pass in a new event loop
            try:
                asyncio.run(self.run_once())
            except Exception as e:
                logger.error(f"[SCHEDULER] Scheduled sync pass failed: {e}")

            self._schedule_next()

        self._scheduler_timer = threading.Timer(self.interval_hours * 3600, run_and_reschedule)
        self._scheduler_timer.daemon = True
        self._scheduler_timer.start()
