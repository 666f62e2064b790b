"""Tests for the keyed in-memory stores behind the ranking engine."""

import threading

from chunkgraph.core.models.ranking import UserPreference
from chunkgraph.services.ranking.stores import (
    FilterRuleStore,
    InMemoryStore,
    UserPreferenceStore,
    default_filter_rules,
)


class TestInMemoryStore:
    def test_reads_return_copies(self):
        store: InMemoryStore[dict] = InMemoryStore()
        store.put("k", {"n": 1})

        snapshot = store.get("k")
        snapshot["n"] = 99

        assert store.get("k") == {"n": 1}

    def test_delete_reports_presence(self):
        store: InMemoryStore[int] = InMemoryStore()
        store.put("k", 1)

        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None
        assert len(store) == 0

    def test_delete_releases_key_lock(self):
        store: InMemoryStore[int] = InMemoryStore()
        for i in range(100):
            store.put(f"k{i}", i)
            store.delete(f"k{i}")

        assert store._key_locks == {}

        store.update("k0", lambda current: (current or 0) + 1)
        assert store.get("k0") == 1

    def test_concurrent_updates_are_not_lost(self):
        store: InMemoryStore[int] = InMemoryStore()

        def _bump():
            for _ in range(200):
                store.update("counter", lambda current: (current or 0) + 1)

        threads = [threading.Thread(target=_bump) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get("counter") == 1600


class TestSeededStores:
    def test_rule_store_seeds_defaults(self):
        ids = {rule.id for rule in FilterRuleStore().values()}

        assert ids == {rule.id for rule in default_filter_rules()}
        assert len(FilterRuleStore(seed_defaults=False)) == 0

    def test_preference_update_creates_entry(self):
        store = UserPreferenceStore()

        prefs = store.update("u1", lambda existing: existing or UserPreference(user_id="u1"))

        assert prefs.user_id == "u1"
        assert prefs.learning_enabled is False
        assert store.get("u1") == prefs
