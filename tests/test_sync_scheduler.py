"""
Unit tests for scheduled sync passes.

Usage:
    pytest tests/test_sync_scheduler.py -v
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from server.fitness_api.errors import MissingRefreshToken
from server.fitness_api.services.sync import SyncResult
from server.fitness_api.services.sync_scheduler import RunStatus, SyncScheduler


@pytest.fixture
def sync_service():
    service = MagicMock()
    service.token_store.list_user_ids.return_value = ["user-1", "user-2", "user-3"]

    async def sync(user_id):
        if user_id == "user-2":
            raise MissingRefreshToken()
        if user_id == "user-3":
            raise RuntimeError("disk full")
        return SyncResult(synced=4, start_date="2024-01-01", end_date="2024-01-31")

    service.sync = AsyncMock(side_effect=sync)
    return service


class TestSchedulerLifecycle:
    """Test starting and stopping the background timer."""

    def test_start_stop_scheduler(self, sync_service):
        """Should start and stop scheduler."""
        scheduler = SyncScheduler(sync_service=sync_service)

        scheduler.start_scheduler(interval_hours=6)
        assert scheduler._scheduler_running is True
        assert scheduler.interval_hours == 6
        assert scheduler._scheduler_timer is not None

        scheduler.stop_scheduler()
        assert scheduler._scheduler_running is False
        assert scheduler._scheduler_timer is None

    def test_start_twice_keeps_first_timer(self, sync_service):
        scheduler = SyncScheduler(sync_service=sync_service)
        scheduler.start_scheduler(interval_hours=6)
        timer = scheduler._scheduler_timer

        scheduler.start_scheduler(interval_hours=12)
        assert scheduler._scheduler_timer is timer
        assert scheduler.interval_hours == 6

        scheduler.stop_scheduler()

    def test_initial_status(self, sync_service):
        status = SyncScheduler(sync_service=sync_service, interval_hours=24).get_status()

        assert status["scheduler_running"] is False
        assert status["interval_hours"] == 24
        assert status["last_run_at"] is None
        assert status["last_outcomes"] == []


class TestRunOnce:
    """Test one pass over all connected users."""

    @pytest.mark.asyncio
    async def test_outcomes_per_user(self, sync_service):
        """One user's failure does not stop the others."""
        scheduler = SyncScheduler(sync_service=sync_service)

        outcomes = await scheduler.run_once()

        assert [o.user_id for o in outcomes] == ["user-1", "user-2", "user-3"]
        assert outcomes[0].status == RunStatus.COMPLETED
        assert outcomes[0].synced == 4
        assert outcomes[1].status == RunStatus.FAILED
        assert outcomes[1].error_type == "MissingRefreshToken"
        assert outcomes[2].error_type == "RuntimeError"
        assert outcomes[2].error == "disk full"

    @pytest.mark.asyncio
    async def test_status_after_pass(self, sync_service):
        scheduler = SyncScheduler(sync_service=sync_service)
        await scheduler.run_once()

        status = scheduler.get_status()
        assert status["pass_running"] is False
        assert status["last_run_at"] is not None
        assert status["last_outcomes"][0] == {
            "user_id": "user-1",
            "status": "completed",
            "synced": 4,
            "error_type": None,
            "error": None,
        }

    @pytest.mark.asyncio
    async def test_no_users(self, sync_service):
        sync_service.token_store.list_user_ids.return_value = []
        outcomes = await SyncScheduler(sync_service=sync_service).run_once()

        assert outcomes == []
        sync_service.sync.assert_not_awaited()
