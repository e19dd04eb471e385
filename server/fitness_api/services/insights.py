"""AI-generated insights from recent fitness metrics.

Insights are produced by an OpenAI-compatible chat completions endpoint and
stored per user. Generation failures raise GenerationError; callers that
must not fail on insight errors (the sync) catch it themselves.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import httpx

from ..config import Settings, get_settings
from ..database import DatabaseManager, db_manager
from ..errors import GenerationError
from ..models.insight import Insight
from ..models.metric import CanonicalMetric
from .metric_store import MetricStore

logger = logging.getLogger(__name__)

INSIGHT_WINDOW_DAYS = 7

NO_DATA_MESSAGE = (
    "Start syncing your Google Fit data to receive personalized AI insights "
    "about your health and performance trends."
)

SYSTEM_PROMPT = """You are an expert fitness and health analyst. Analyze the user's fitness data and provide a concise, actionable insight (2-3 sentences max). Focus on correlations between metrics like:
- Sleep quality vs. Recovery
- Nutrition vs. Performance
- Heart rate variability vs. Workout intensity
- Energy trends and patterns

Be specific, data-driven, and motivating. Highlight surprising correlations or important trends."""


def _row_to_insight(row) -> Insight:
    """Convert SQLite row to Insight model."""
    return Insight(
        id=row["id"],
        user_id=row["user_id"],
        content=row["content"],
        type=row["type"],
        is_read=bool(row["is_read"]),
        generated_at=row["generated_at"],
    )


class InsightStore:
    """SQLite-backed insight history."""

    def __init__(self, db: DatabaseManager = None):
        self.db = db or db_manager

    def get_latest(self, user_id: str) -> Optional[Insight]:
        with self.db.connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM insights
                WHERE user_id = ?
                ORDER BY generated_at DESC, id DESC
                LIMIT 1
                """,
                (user_id,),
            ).fetchone()
        return _row_to_insight(row) if row else None

    def save(self, user_id: str, content: str, insight_type: str = "daily") -> Insight:
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO insights (user_id, content, type, is_read, generated_at)
                VALUES (?, ?, ?, 0, ?)
                """,
                (user_id, content, insight_type, datetime.now(timezone.utc).isoformat()),
            )
            row = conn.execute(
                "SELECT * FROM insights WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _row_to_insight(row)

    def mark_read(self, insight_id: int, user_id: str) -> bool:
        """Mark one of the user's insights as read. Returns False if there is none."""
        with self.db.connection() as conn:
            cursor = conn.execute(
                "UPDATE insights SET is_read = 1 WHERE id = ? AND user_id = ?",
                (insight_id, user_id),
            )
        return cursor.rowcount > 0


def _signed(value: int) -> str:
    return f"+{value:,}" if value > 0 else f"{value:,}"


def _average(values: List[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def prepare_data_summary(metrics: Sequence[CanonicalMetric]) -> str:
    """Render an oldest-first metric window as plain text for the prompt."""
    latest = metrics[-1]
    previous = metrics[-2] if len(metrics) > 1 else None

    lines = [f"Recent Metrics (last {len(metrics)} days):", "", f"Latest Day ({latest.date}):"]
    if latest.rhr is not None:
        lines.append(f"- Resting Heart Rate: {latest.rhr} bpm")
    if latest.hrv is not None:
        lines.append(f"- HRV: {latest.hrv}")
    if latest.sleep_score is not None:
        lines.append(f"- Sleep Score: {latest.sleep_score}/100")
    if latest.deep_sleep_minutes is not None:
        lines.append(f"- Deep Sleep: {latest.deep_sleep_minutes} minutes")
    lines.append(f"- Steps: {latest.steps:,}")
    lines.append(f"- Calories: {latest.calories}")
    if latest.recovery_score is not None:
        lines.append(f"- Recovery Score: {latest.recovery_score}/100")

    if previous is not None:
        lines += ["", "Changes from Previous Day:"]
        if latest.rhr is not None and previous.rhr is not None:
            lines.append(f"- RHR: {_signed(latest.rhr - previous.rhr)} bpm")
        if latest.sleep_score is not None and previous.sleep_score is not None:
            lines.append(f"- Sleep Score: {_signed(latest.sleep_score - previous.sleep_score)}")
        lines.append(f"- Steps: {_signed(latest.steps - previous.steps)}")

    avg_rhr = _average([m.rhr for m in metrics if m.rhr is not None])
    avg_sleep = _average([m.sleep_score for m in metrics if m.sleep_score is not None])
    avg_steps = _average([m.steps for m in metrics])

    lines += ["", "Weekly Averages:"]
    if avg_rhr is not None:
        lines.append(f"- Avg RHR: {round(avg_rhr)} bpm")
    if avg_sleep is not None:
        lines.append(f"- Avg Sleep Score: {round(avg_sleep)}/100")
    if avg_steps is not None:
        lines.append(f"- Avg Steps: {round(avg_steps):,}")

    return "\n".join(lines) + "\n"


class InsightGenerator:
    """
    Generates and stores a daily insight for a user.

    Args:
        metric_store: Source of recent metrics
        insight_store: Where generated insights are saved
        settings: Model, endpoint and API key
        transport: Optional httpx transport (tests inject MockTransport)
    """

    def __init__(
        self,
        metric_store: MetricStore = None,
        insight_store: InsightStore = None,
        settings: Settings = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.metric_store = metric_store or MetricStore()
        self.insight_store = insight_store or InsightStore()
        self.settings = settings or get_settings()
        self.transport = transport

    async def generate(self, user_id: str) -> str:
        """Generate, store and return an insight for the last week of metrics."""
        metrics = self.metric_store.get_metrics(user_id, INSIGHT_WINDOW_DAYS)
        if not metrics:
            return NO_DATA_MESSAGE

        if not self.settings.openai_api_key:
            raise GenerationError("No API key configured for insight generation")

        summary = prepare_data_summary(metrics)
        content = await self._complete(summary)

        self.insight_store.save(user_id, content)
        logger.info(f"[INSIGHTS] Generated insight for {user_id}")
        return content

    async def _complete(self, data_summary: str) -> str:
        """Call the chat completions endpoint and return the message text."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.insight_timeout),
                transport=self.transport,
            ) as client:
                response = await client.post(
                    f"{self.settings.openai_base_url.rstrip('/')}/chat/completions",
                    headers={"Authorization": f"Bearer {self.settings.openai_api_key}"},
                    json={
                        "model": self.settings.insight_model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {
                                "role": "user",
                                "content": "Analyze this week's fitness data and provide "
                                f"one key insight:\n\n{data_summary}",
                            },
                        ],
                        "temperature": 0.7,
                        "max_tokens": 150,
                    },
                )
        except httpx.HTTPError as e:
            raise GenerationError(f"Insight request failed: {e}") from e

        if response.status_code != 200:
            raise GenerationError(
                f"Insight endpoint returned status {response.status_code}: {response.text}"
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationError("Insight endpoint returned an unexpected payload") from e

        if not content or not content.strip():
            raise GenerationError("Insight endpoint returned empty content")
        return content.strip()
