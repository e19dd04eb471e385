"""SQLite connection manager for synced fitness data."""
import sqlite3
from contextlib import contextmanager
from typing import Generator
import logging

from .config import get_settings

log = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS fitness_metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    steps INTEGER NOT NULL DEFAULT 0,
    calories INTEGER NOT NULL DEFAULT 0,
    rhr INTEGER,
    hrv INTEGER,
    total_sleep_minutes INTEGER,
    deep_sleep_minutes INTEGER,
    activity_minutes INTEGER,
    sleep_score INTEGER,
    recovery_score INTEGER,
    workout_intensity INTEGER,
    protein INTEGER NOT NULL DEFAULT 0,
    carbs INTEGER NOT NULL DEFAULT 0,
    fats INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_fitness_metrics_user_date
    ON fitness_metrics (user_id, date);

CREATE TABLE IF NOT EXISTS google_fit_tokens (
    user_id TEXT PRIMARY KEY,
    access_token TEXT NOT NULL,
    refresh_token TEXT,
    expires_at TEXT NOT NULL,
    scope TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS insights (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    content TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'daily',
    is_read INTEGER NOT NULL DEFAULT 0,
    generated_at TEXT NOT NULL
);
"""


class DatabaseManager:
    """
    SQLite database manager for the sync pipeline.

    Every call to connection() opens a fresh connection; the block commits
    on success and rolls back if it raises.
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path or get_settings().database_path

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a read-write connection wrapped in a transaction."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable dict-like row access
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create tables if they do not exist yet."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        log.info(f"[DATABASE] Schema ready at {self.db_path}")

    def ping(self) -> bool:
        """Run a trivial query, raising if the database is unreachable."""
        with self.connection() as conn:
            conn.execute("SELECT 1").fetchone()
        return True


# Singleton instance
db_manager = DatabaseManager()
