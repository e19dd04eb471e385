"""Sync request and response models."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel
from .metric import ISO_DATE_PATTERN


class SyncRequest(CamelModel):
    """Optional inclusive date range for a sync; defaults to the last 30 days."""

    start_date: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    end_date: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)


class SyncDetails(CamelModel):
    start_date: str
    end_date: str
    metrics_count: int


class SyncResponse(CamelModel):
    success: bool = True
    synced: int
    message: str
    details: SyncDetails


class GoogleFitStatus(CamelModel):
    connected: bool
    expires_at: Optional[datetime] = None
    has_synced_data: bool = False
    last_synced_at: Optional[str] = None
