"""Shared service instances and FastAPI dependencies."""
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from ..config import get_settings
from ..database import db_manager
from .credentials import CredentialProvider, TokenStore
from .insights import InsightGenerator, InsightStore
from .metric_store import MetricStore
from .sync import SyncService
from .sync_scheduler import SyncScheduler
from .token_cache import ExpiringStore


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """User id placed on the request by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id


@lru_cache
def get_token_store() -> TokenStore:
    return TokenStore(db_manager)


@lru_cache
def get_metric_store() -> MetricStore:
    return MetricStore(db_manager)


@lru_cache
def get_insight_store() -> InsightStore:
    return InsightStore(db_manager)


@lru_cache
def get_credential_provider() -> CredentialProvider:
    return CredentialProvider(
        token_store=get_token_store(), cache=ExpiringStore(), settings=get_settings()
    )


@lru_cache
def get_insight_generator() -> InsightGenerator:
    return InsightGenerator(
        metric_store=get_metric_store(),
        insight_store=get_insight_store(),
        settings=get_settings(),
    )


@lru_cache
def get_sync_service() -> SyncService:
    return SyncService(
        token_store=get_token_store(),
        credentials=get_credential_provider(),
        metric_store=get_metric_store(),
        insight_generator=get_insight_generator(),
        settings=get_settings(),
    )


@lru_cache
def get_sync_scheduler() -> SyncScheduler:
    return SyncScheduler(
        sync_service=get_sync_service(),
        interval_hours=get_settings().scheduler_interval_hours,
    )
