"""Error taxonomy for the Google Fit sync pipeline.

Every error surfaced to callers of the sync operation carries an HTTP
status and a stable ``error_type`` tag so the client can pick its copy.
"""
from typing import Optional


class FitnessSyncError(Exception):
    """Base class for failures surfaced by the sync pipeline."""

    status_code = 500
    error_type = "GoogleFitSyncError"
    default_message = "Failed to sync Google Fit data"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "errorType": self.error_type,
            "details": "Check server logs for more information",
        }


class MissingOAuthConsent(FitnessSyncError):
    """No credential record exists for the user."""

    status_code = 400
    error_type = "MissingOAuthConsent"
    default_message = "Please connect Google Fit before syncing."


class MissingRefreshToken(FitnessSyncError):
    """A credential exists but has no refresh token."""

    status_code = 400
    error_type = "MissingRefreshToken"
    default_message = "Google Fit: refresh token missing"


class StaleRefreshToken(FitnessSyncError):
    """The refresh token was rejected by the token endpoint."""

    status_code = 400
    error_type = "StaleRefreshToken"
    default_message = "Google Fit access expired. Reconnect to refresh permissions."


class AuthExpired(StaleRefreshToken):
    """Upstream rejected the access token (HTTP 401)."""


class GoogleApiForbidden(FitnessSyncError):
    """Upstream rejected the request (HTTP 403)."""

    status_code = 403
    error_type = "GoogleApiForbidden"
    default_message = "Google Fit denied the request. Reconnect and try again."


class UpstreamError(FitnessSyncError):
    """Any other upstream or network failure."""

    status_code = 502
    error_type = "UpstreamError"


class InvalidDateRange(FitnessSyncError):
    status_code = 400
    error_type = "InvalidDateRange"
    default_message = "startDate must be on or before endDate"


class GenerationError(Exception):
    """Insight text generation failed."""
