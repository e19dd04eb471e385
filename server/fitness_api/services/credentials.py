"""
Google Fit credential storage and access-token lifecycle.

The sync pipeline only ever asks for a valid bearer token; this module owns
looking it up, refreshing it when expired and caching it until expiry.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import httpx

from ..config import Settings, get_settings
from ..database import DatabaseManager, db_manager
from ..errors import (
    MissingOAuthConsent,
    MissingRefreshToken,
    StaleRefreshToken,
    UpstreamError,
)
from ..models.credential import CredentialRecord
from .token_cache import ExpiringStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_credential(row) -> CredentialRecord:
    """Convert SQLite row to CredentialRecord model."""
    return CredentialRecord(
        user_id=row["user_id"],
        access_token=row["access_token"],
        refresh_token=row["refresh_token"],
        expires_at=_parse_timestamp(row["expires_at"]),
        scope=row["scope"],
        updated_at=_parse_timestamp(row["updated_at"]),
    )


class TokenStore:
    """SQLite-backed OAuth token table keyed by user id."""

    def __init__(self, db: DatabaseManager = None):
        self.db = db or db_manager

    def get(self, user_id: str) -> Optional[CredentialRecord]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM google_fit_tokens WHERE user_id = ?", (user_id,)
            ).fetchone()
        return _row_to_credential(row) if row else None

    def save(self, record: CredentialRecord) -> CredentialRecord:
        """Insert or replace the token state for record.user_id."""
        now = utcnow().isoformat()
        with self.db.connection() as conn:
            conn.execute(
                """
                INSERT INTO google_fit_tokens
                    (user_id, access_token, refresh_token, expires_at, scope, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    access_token = excluded.access_token,
                    refresh_token = excluded.refresh_token,
                    expires_at = excluded.expires_at,
                    scope = excluded.scope,
                    updated_at = excluded.updated_at
                """,
                (
                    record.user_id,
                    record.access_token,
                    record.refresh_token,
                    record.expires_at.isoformat(),
                    record.scope,
                    now,
                    now,
                ),
            )
        return self.get(record.user_id)

    def update_access_token(self, user_id: str, access_token: str, expires_at: datetime) -> None:
        with self.db.connection() as conn:
            conn.execute(
                """
                UPDATE google_fit_tokens
                SET access_token = ?, expires_at = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (access_token, expires_at.isoformat(), utcnow().isoformat(), user_id),
            )

    def mark_expired(self, user_id: str) -> None:
        """Force the next lookup to refresh the access token."""
        expired = utcnow() - timedelta(seconds=1)
        with self.db.connection() as conn:
            conn.execute(
                "UPDATE google_fit_tokens SET expires_at = ?, updated_at = ? WHERE user_id = ?",
                (expired.isoformat(), utcnow().isoformat(), user_id),
            )

    def delete(self, user_id: str) -> None:
        with self.db.connection() as conn:
            conn.execute("DELETE FROM google_fit_tokens WHERE user_id = ?", (user_id,))

    def list_user_ids(self) -> List[str]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT user_id FROM google_fit_tokens ORDER BY user_id"
            ).fetchall()
        return [row["user_id"] for row in rows]


class CredentialProvider:
    """
    Hands out valid Google Fit access tokens.

    Args:
        token_store: Persistent token table
        cache: Expiring store used to skip the database on hot paths
        settings: OAuth client configuration
        transport: Optional httpx transport (tests inject MockTransport)
        now: Clock returning an aware UTC datetime
    """

    def __init__(
        self,
        token_store: TokenStore = None,
        cache: ExpiringStore = None,
        settings: Settings = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self.token_store = token_store or TokenStore()
        self.cache = cache if cache is not None else ExpiringStore()
        self.settings = settings or get_settings()
        self.transport = transport
        self.now = now

    def _cache_token(self, user_id: str, access_token: str, expires_at: datetime) -> None:
        remaining = (expires_at - self.now()).total_seconds()
        ttl = min(remaining, self.settings.token_cache_ttl_seconds)
        self.cache.set(user_id, access_token, ttl)

    async def get_valid_access_token(self, user_id: str) -> str:
        """
        Return a bearer token for user_id, refreshing it if expired.

        Raises:
            MissingOAuthConsent: no credential stored for the user
            MissingRefreshToken: token expired and no refresh token stored
            StaleRefreshToken: the refresh token was rejected
            UpstreamError: the token endpoint failed for another reason
        """
        cached = self.cache.get(user_id)
        if cached:
            return cached

        record = self.token_store.get(user_id)
        if record is None:
            raise MissingOAuthConsent(
                "No Google Fit token found. Please connect your Google Fit account."
            )

        if record.expires_at > self.now():
            self._cache_token(user_id, record.access_token, record.expires_at)
            return record.access_token

        if not record.refresh_token:
            raise MissingRefreshToken(
                "Refresh token not available. Please reconnect your Google Fit account."
            )

        logger.info(f"[CREDENTIALS] Access token expired for user {user_id}, refreshing")
        access_token, expires_at = await self._refresh(record.refresh_token)

        self.token_store.update_access_token(user_id, access_token, expires_at)
        self._cache_token(user_id, access_token, expires_at)
        return access_token

    async def _refresh(self, refresh_token: str) -> tuple:
        """Exchange a refresh token for a new access token and its expiry."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.upstream_timeout),
                transport=self.transport,
            ) as client:
                response = await client.post(
                    self.settings.google_token_url,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                        "client_id": self.settings.google_client_id or "",
                        "client_secret": self.settings.google_client_secret or "",
                    },
                )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Token refresh failed: {e}") from e

        if response.status_code in (400, 401):
            logger.warning(f"[CREDENTIALS] Refresh rejected: {response.text}")
            raise StaleRefreshToken()
        if response.status_code != 200:
            raise UpstreamError(
                f"Token endpoint returned status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Token endpoint returned a non-JSON response") from e
        if not isinstance(payload, dict):
            raise UpstreamError("Token endpoint returned an unexpected payload")

        access_token = payload.get("access_token")
        if not access_token:
            raise UpstreamError("Token endpoint returned no access token")

        expires_at = self.now() + timedelta(seconds=int(payload.get("expires_in", 3600)))
        return access_token, expires_at

    def forget(self, user_id: str) -> None:
        """Delete stored credentials and any cached token."""
        self.cache.delete(user_id)
        self.token_store.delete(user_id)
        logger.info(f"[CREDENTIALS] Disconnected user {user_id}")

    def invalidate(self, user_id: str) -> None:
        """Drop the cached token and force a refresh on next use."""
        self.cache.delete(user_id)
        self.token_store.mark_expired(user_id)
        logger.info(f"[CREDENTIALS] Invalidated access token for user {user_id}")
