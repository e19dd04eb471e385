"""OAuth credential model."""
from datetime import datetime
from typing import Optional

from .base import CamelModel


class CredentialRecord(CamelModel):
    """Google Fit OAuth token state for one user."""

    user_id: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime
    scope: Optional[str] = None
    updated_at: Optional[datetime] = None


class CredentialInput(CamelModel):
    """Token state handed over by the OAuth layer after consent."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime
    scope: Optional[str] = None
