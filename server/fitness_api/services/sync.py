"""
Google Fit sync pipeline.

One sync is a single sequential pass: credential check -> fetch ->
transform -> per-record upsert -> best-effort insight generation.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from ..config import Settings, get_settings
from ..errors import AuthExpired, MissingOAuthConsent, MissingRefreshToken
from .credentials import CredentialProvider, TokenStore
from .google_fit import GoogleFitFetcher
from .insights import InsightGenerator
from .metric_store import MetricStore
from .transformer import transform

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one successful sync."""

    synced: int
    start_date: str
    end_date: str

    @property
    def message(self) -> str:
        return f"Successfully synced {self.synced} days of fitness data"


def default_range(days: int, today: Optional[date] = None) -> tuple:
    """The `days`-day window ending today, as ISO strings."""
    end = today or date.today()
    start = end - timedelta(days=days)
    return start.isoformat(), end.isoformat()


class SyncService:
    """
    Runs the fetch/transform/store pipeline for one user.

    Collaborators are injected so tests can swap any of them.
    """

    def __init__(
        self,
        token_store: TokenStore = None,
        credentials: CredentialProvider = None,
        fetcher: GoogleFitFetcher = None,
        metric_store: MetricStore = None,
        insight_generator: InsightGenerator = None,
        settings: Settings = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or get_settings()
        self.token_store = token_store or TokenStore()
        self.credentials = credentials or CredentialProvider(
            token_store=self.token_store, settings=self.settings
        )
        self.fetcher = fetcher or GoogleFitFetcher(
            credentials=self.credentials, settings=self.settings
        )
        self.metric_store = metric_store or MetricStore()
        self.insight_generator = insight_generator or InsightGenerator(
            metric_store=self.metric_store, settings=self.settings
        )
        self.today = today

    async def sync(
        self,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> SyncResult:
        """
        Sync an inclusive date range for a user.

        Raises:
            FitnessSyncError: any kind from the error taxonomy; nothing is
                stored when it is raised before the upsert step
        """
        record = self.token_store.get(user_id)
        if record is None:
            raise MissingOAuthConsent()
        if not record.refresh_token:
            raise MissingRefreshToken()

        default_start, default_end = default_range(self.settings.sync_default_days, self.today())
        start = start_date or default_start
        end = end_date or default_end

        logger.info(f"[SYNC] Starting sync for user {user_id} from {start} to {end}")

        try:
            result = await self.fetcher.fetch(user_id, start, end)
        except AuthExpired:
            self.credentials.invalidate(user_id)
            raise

        metrics = transform(result, user_id)
        logger.info(f"[SYNC] Transformed {len(metrics)} days of metrics")

        self.metric_store.save_all(metrics)
        logger.info("[SYNC] Successfully saved metrics to database")

        await self._generate_insight(user_id)

        return SyncResult(synced=len(metrics), start_date=start, end_date=end)

    async def _generate_insight(self, user_id: str) -> None:
        """Generate an insight; failures are logged and never fail the sync."""
        try:
            await self.insight_generator.generate(user_id)
            logger.info("[SYNC] AI insight generated successfully")
        except Exception as e:
            logger.error(f"[SYNC] Failed to generate AI insight: {e}")
