"""Google Fit aggregate fetcher.

Requests one-day buckets for an inclusive date range and returns the parsed
BucketedResult. Steps and calories are required. Every other metric type is
requested on its own on a best effort basis, so a user with no source for
it (Google Fit answers 400) still gets the rest synced.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

import httpx

from ..config import Settings, get_settings
from ..errors import (
    AuthExpired,
    FitnessSyncError,
    GoogleApiForbidden,
    InvalidDateRange,
    UpstreamError,
)
from .credentials import CredentialProvider
from .payload import (
    ACTIVITY_SEGMENT,
    CALORIES_EXPENDED,
    HEART_RATE,
    HEART_RATE_VARIABILITY,
    NUTRITION,
    SLEEP_SEGMENT,
    STEP_COUNT,
    BucketedResult,
    parse_aggregate_response,
)

logger = logging.getLogger(__name__)

REQUIRED_DATA_TYPES = [STEP_COUNT, CALORIES_EXPENDED]
# Requested one per call; a user without a source for one still syncs the rest.
OPTIONAL_DATA_TYPES = [HEART_RATE, SLEEP_SEGMENT, ACTIVITY_SEGMENT, NUTRITION, HEART_RATE_VARIABILITY]

ONE_DAY_MILLIS = 86_400_000


def parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateRange(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def range_to_millis(start_date: str, end_date: str) -> tuple:
    """
    Epoch-millisecond bounds covering both dates in full (UTC).

    Raises InvalidDateRange if start_date is after end_date.
    """
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    if start > end:
        raise InvalidDateRange(f"startDate {start_date} is after endDate {end_date}")

    start_dt = datetime.combine(start, time.min, tzinfo=timezone.utc)
    end_dt = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return int(start_dt.timestamp() * 1000), int(end_dt.timestamp() * 1000)


class GoogleFitFetcher:
    """
    Read-only client for the Google Fit ``dataset:aggregate`` endpoint.

    Args:
        credentials: Supplies bearer tokens per user
        settings: Base URL and timeout
        transport: Optional httpx transport (tests inject MockTransport)
    """

    def __init__(
        self,
        credentials: CredentialProvider = None,
        settings: Settings = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.credentials = credentials or CredentialProvider(settings=self.settings)
        self.transport = transport

    @property
    def aggregate_url(self) -> str:
        return f"{self.settings.google_fit_base_url}/users/me/dataset:aggregate"

    async def fetch(self, user_id: str, start_date: str, end_date: str) -> BucketedResult:
        """
        Fetch daily buckets for [start_date, end_date].

        Raises:
            InvalidDateRange: malformed dates or start after end
            AuthExpired: upstream returned 401
            GoogleApiForbidden: upstream returned 403
            UpstreamError: any other upstream or network failure
        """
        start_millis, end_millis = range_to_millis(start_date, end_date)
        access_token = await self.credentials.get_valid_access_token(user_id)

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.upstream_timeout),
            transport=self.transport,
            headers={"Authorization": f"Bearer {access_token}"},
        ) as client:
            payload = await self._aggregate(client, REQUIRED_DATA_TYPES, start_millis, end_millis)
            result = parse_aggregate_response(payload)

            for data_type in OPTIONAL_DATA_TYPES:
                try:
                    optional = await self._aggregate(
                        client, [data_type], start_millis, end_millis
                    )
                except FitnessSyncError as e:
                    logger.warning(
                        f"[GOOGLE FIT] Skipping {data_type} for {user_id}: {e.message}"
                    )
                    continue
                result = result.merge(parse_aggregate_response(optional))

        logger.info(
            f"[GOOGLE FIT] Fetched {len(result.buckets)} buckets for {user_id} "
            f"({start_date} to {end_date})"
        )
        return result

    async def _aggregate(
        self,
        client: httpx.AsyncClient,
        data_types: List[str],
        start_millis: int,
        end_millis: int,
    ) -> dict:
        """POST one aggregate request and map failures to the error taxonomy."""
        body = {
            "aggregateBy": [{"dataTypeName": name} for name in data_types],
            "bucketByTime": {"durationMillis": ONE_DAY_MILLIS},
            "startTimeMillis": start_millis,
            "endTimeMillis": end_millis,
        }

        try:
            response = await client.post(self.aggregate_url, json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch Google Fit data: {e}") from e

        if response.status_code == 401:
            raise AuthExpired()
        if response.status_code == 403:
            raise GoogleApiForbidden()
        if response.status_code >= 300:
            raise UpstreamError(
                f"Failed to fetch Google Fit data: status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Google Fit returned a non-JSON response") from e
        if not isinstance(payload, dict):
            raise UpstreamError("Google Fit returned an unexpected payload")
        return payload
