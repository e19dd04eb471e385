"""Persistence for canonical daily metrics.

Records are keyed by (user_id, date). upsert() is the idempotence boundary
of the sync pipeline: writing the same record any number of times leaves
exactly one row holding the last values written.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..database import DatabaseManager, db_manager
from ..models.metric import CanonicalMetric, StoredMetric

logger = logging.getLogger(__name__)

METRIC_COLUMNS = [
    "steps",
    "calories",
    "rhr",
    "hrv",
    "total_sleep_minutes",
    "deep_sleep_minutes",
    "activity_minutes",
    "sleep_score",
    "recovery_score",
    "workout_intensity",
    "protein",
    "carbs",
    "fats",
]


def _row_to_metric(row) -> StoredMetric:
    """Convert SQLite row to StoredMetric model."""
    return StoredMetric(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        **{column: row[column] for column in METRIC_COLUMNS},
    )


class MetricStore:
    """SQLite-backed store of CanonicalMetric rows."""

    def __init__(self, db: DatabaseManager = None):
        self.db = db or db_manager

    def upsert(self, record: CanonicalMetric) -> StoredMetric:
        """Update the row for (user_id, date) if it exists, insert it otherwise."""
        now = datetime.now(timezone.utc).isoformat()
        values = [getattr(record, column) for column in METRIC_COLUMNS]

        with self.db.connection() as conn:
            # Take the write lock before the lookup so the check and the write
            # happen in one transaction.
            conn.execute("BEGIN IMMEDIATE")
            existing = conn.execute(
                "SELECT id FROM fitness_metrics WHERE user_id = ? AND date = ?",
                (record.user_id, record.date),
            ).fetchone()

            if existing:
                assignments = ", ".join(f"{column} = ?" for column in METRIC_COLUMNS)
                conn.execute(
                    f"UPDATE fitness_metrics SET {assignments}, updated_at = ? WHERE id = ?",
                    (*values, now, existing["id"]),
                )
                row_id = existing["id"]
            else:
                columns = ", ".join(METRIC_COLUMNS)
                placeholders = ", ".join("?" * len(METRIC_COLUMNS))
                cursor = conn.execute(
                    f"""
                    INSERT INTO fitness_metrics
                        (user_id, date, {columns}, created_at, updated_at)
                    VALUES (?, ?, {placeholders}, ?, ?)
                    """,
                    (record.user_id, record.date, *values, now, now),
                )
                row_id = cursor.lastrowid

            row = conn.execute(
                "SELECT * FROM fitness_metrics WHERE id = ?", (row_id,)
            ).fetchone()

        return _row_to_metric(row)

    def save_all(self, records: Iterable[CanonicalMetric]) -> List[StoredMetric]:
        """Upsert each record in order."""
        stored = [self.upsert(record) for record in records]
        if stored:
            logger.info(f"[METRIC STORE] Upserted {len(stored)} records")
        return stored

    def get_metric_by_date(self, user_id: str, date: str) -> Optional[StoredMetric]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM fitness_metrics WHERE user_id = ? AND date = ?",
                (user_id, date),
            ).fetchone()
        return _row_to_metric(row) if row else None

    def get_metrics(self, user_id: str, days: int = 30) -> List[StoredMetric]:
        """Return the latest `days` records for a user, oldest first."""
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM fitness_metrics
                WHERE user_id = ?
                ORDER BY date DESC
                LIMIT ?
                """,
                (user_id, days),
            ).fetchall()
        return [_row_to_metric(row) for row in reversed(rows)]
