"""
Tests for the SQLite metric store.

Uses a temporary database per test.

Usage:
    pytest tests/test_metric_store.py -v
"""
import sqlite3

import pytest


class TestUpsert:
    """Test idempotent writes keyed by (user_id, date)."""

    def test_insert_then_read(self, metric_store, make_metric):
        stored = metric_store.upsert(make_metric(steps=8000, rhr=58))

        assert stored.id > 0
        assert stored.steps == 8000
        assert stored.rhr == 58
        assert stored.created_at == stored.updated_at

        fetched = metric_store.get_metric_by_date("user-1", "2024-01-01")
        assert fetched == stored

    def test_same_record_twice_keeps_one_row(self, metric_store, make_metric, db):
        record = make_metric(steps=8000)
        metric_store.upsert(record)
        metric_store.upsert(record)

        with db.connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM fitness_metrics").fetchone()[0]
        assert count == 1

    def test_last_write_wins(self, metric_store, make_metric):
        first = metric_store.upsert(make_metric(steps=1000, sleep_score=60))
        second = metric_store.upsert(make_metric(steps=2000, sleep_score=None))

        assert second.id == first.id
        assert second.steps == 2000
        assert second.sleep_score is None
        assert second.created_at == first.created_at

    def test_users_are_isolated(self, metric_store, make_metric):
        metric_store.upsert(make_metric(user_id="user-1", steps=1))
        metric_store.upsert(make_metric(user_id="user-2", steps=2))

        assert metric_store.get_metric_by_date("user-1", "2024-01-01").steps == 1
        assert metric_store.get_metric_by_date("user-2", "2024-01-01").steps == 2

    def test_overlapping_syncs(self, metric_store, make_metric):
        metric_store.save_all([make_metric(f"2024-01-0{d}", steps=d) for d in range(1, 6)])
        metric_store.save_all([make_metric(f"2024-01-0{d}", steps=d * 100) for d in range(3, 8)])

        metrics = metric_store.get_metrics("user-1", 30)
        assert [m.date for m in metrics] == [f"2024-01-0{d}" for d in range(1, 8)]
        assert [m.steps for m in metrics] == [1, 2, 300, 400, 500, 600, 700]

    def test_failed_write_leaves_no_row(self, metric_store, make_metric, db):
        with db.connection() as conn:
            conn.execute("DROP TABLE fitness_metrics")
            conn.execute("CREATE TABLE fitness_metrics (id INTEGER PRIMARY KEY, user_id TEXT, date TEXT)")

        with pytest.raises(sqlite3.OperationalError):
            metric_store.upsert(make_metric())

        with db.connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM fitness_metrics").fetchone()[0]
        assert count == 0


class TestGetMetrics:
    """Test the read path ordering and window."""

    def test_empty(self, metric_store):
        assert metric_store.get_metrics("nobody") == []
        assert metric_store.get_metric_by_date("nobody", "2024-01-01") is None

    def test_latest_window_oldest_first(self, metric_store, make_metric):
        for day in ["2024-01-03", "2024-01-01", "2024-01-05", "2024-01-02", "2024-01-04"]:
            metric_store.upsert(make_metric(day))

        metrics = metric_store.get_metrics("user-1", days=3)
        assert [m.date for m in metrics] == ["2024-01-03", "2024-01-04", "2024-01-05"]

    def test_save_all_returns_stored(self, metric_store, make_metric):
        stored = metric_store.save_all([make_metric("2024-01-01"), make_metric("2024-01-02")])
        assert [m.date for m in stored] == ["2024-01-01", "2024-01-02"]
        assert metric_store.save_all([]) == []
