"""
Unit tests for the expiring key-value store.

Usage:
    pytest tests/test_token_cache.py -v
"""
from server.fitness_api.services.token_cache import ExpiringStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestExpiringStore:
    """Test per-entry expiry."""

    def test_get_before_expiry(self):
        clock = FakeClock()
        store = ExpiringStore(clock=clock)
        store.set("user-1", "token", 60)

        clock.now += 59
        assert store.get("user-1") == "token"

    def test_expired_entry_is_evicted_on_read(self):
        clock = FakeClock()
        store = ExpiringStore(clock=clock)
        store.set("user-1", "token", 60)

        clock.now += 60
        assert store.get("user-1") is None
        assert len(store) == 0

    def test_non_positive_ttl_removes_entry(self):
        store = ExpiringStore(clock=FakeClock())
        store.set("user-1", "token", 60)
        store.set("user-1", "other", 0)
        assert store.get("user-1") is None

    def test_delete(self):
        store = ExpiringStore(clock=FakeClock())
        store.set("user-1", "token", 60)
        store.delete("user-1")
        store.delete("missing")
        assert store.get("user-1") is None

    def test_sweep(self):
        clock = FakeClock()
        store = ExpiringStore(clock=clock)
        store.set("a", 1, 10)
        store.set("b", 2, 100)
        store.set("c", 3, 5)

        clock.now += 20
        assert store.sweep() == 2
        assert len(store) == 1
        assert store.get("b") == 2
