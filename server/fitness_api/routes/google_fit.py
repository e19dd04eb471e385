"""Google Fit connection and sync API routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ..errors import FitnessSyncError
from ..models.credential import CredentialInput, CredentialRecord
from ..models.sync import GoogleFitStatus, SyncDetails, SyncRequest, SyncResponse
from ..services.credentials import CredentialProvider, TokenStore
from ..services.dependencies import (
    get_credential_provider,
    get_current_user_id,
    get_metric_store,
    get_sync_service,
    get_token_store,
)
from ..services.metric_store import MetricStore
from ..services.sync import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/google-fit", tags=["Google Fit"])


@router.get("/status", response_model=GoogleFitStatus)
async def get_google_fit_status(
    user_id: str = Depends(get_current_user_id),
    token_store: TokenStore = Depends(get_token_store),
    metric_store: MetricStore = Depends(get_metric_store),
):
    """Report whether the user is connected and when data was last synced."""
    token = token_store.get(user_id)
    latest = None
    if token:
        recent = metric_store.get_metrics(user_id, 1)
        latest = recent[-1] if recent else None

    return GoogleFitStatus(
        connected=token is not None,
        expires_at=token.expires_at if token else None,
        has_synced_data=latest is not None,
        last_synced_at=latest.date if latest else None,
    )


@router.put("/credentials", response_model=GoogleFitStatus)
async def save_credentials(
    credential: CredentialInput,
    user_id: str = Depends(get_current_user_id),
    token_store: TokenStore = Depends(get_token_store),
    credentials: CredentialProvider = Depends(get_credential_provider),
):
    """Store the tokens obtained by the OAuth consent flow for the caller."""
    credentials.cache.delete(user_id)
    record = token_store.save(CredentialRecord(user_id=user_id, **credential.model_dump()))
    logger.info(f"[CREDENTIALS] Stored Google Fit credentials for user {user_id}")
    return GoogleFitStatus(connected=True, expires_at=record.expires_at)


@router.delete("/disconnect")
async def disconnect_google_fit(
    user_id: str = Depends(get_current_user_id),
    credentials: CredentialProvider = Depends(get_credential_provider),
):
    """Forget the user's stored Google Fit credentials."""
    credentials.forget(user_id)
    return {"success": True}


@router.post("/sync", response_model=SyncResponse)
async def sync_google_fit(
    request: Optional[SyncRequest] = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    sync_service: SyncService = Depends(get_sync_service),
):
    """
    Fetch, normalize and store Google Fit data for a date range.

    Defaults to the last 30 days ending today. Failures are returned with a
    stable errorType so the client can choose its copy.
    """
    request = request or SyncRequest()
    try:
        result = await sync_service.sync(user_id, request.start_date, request.end_date)
    except FitnessSyncError as e:
        logger.error(f"[SYNC] Error for user {user_id}: {e.error_type}: {e.message}")
        return JSONResponse(status_code=e.status_code, content=e.to_response())

    return SyncResponse(
        synced=result.synced,
        message=result.message,
        details=SyncDetails(
            start_date=result.start_date,
            end_date=result.end_date,
            metrics_count=result.synced,
        ),
    )
