"""In-memory keyed stores for filter rules and learned user preferences.

# CONCURRENCY: One lock per key serializes writers of that key; readers get
#   snapshot copies and never block on other keys.
"""

import copy
import threading
from collections.abc import Callable
from typing import TypeVar

from chunkgraph.core.models.ranking import FilterRule, MetadataFilter, UserPreference
from chunkgraph.core.types.common import FilterAction, FilterOperator
from chunkgraph.interfaces.store import KeyValueStore

T = TypeVar("T")


class InMemoryStore(KeyValueStore[T]):
    def __init__(self) -> None:
        self._data: dict[str, T] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get(self, key: str) -> T | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: T) -> None:
        with self._lock_for(key):
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock_for(key):
            existed = self._data.pop(key, None) is not None
            with self._locks_guard:
                self._key_locks.pop(key, None)
        return existed

    def values(self) -> list[T]:
        return [copy.deepcopy(v) for v in list(self._data.values())]

    def update(self, key: str, fn: Callable[[T | None], T]) -> T:
        with self._lock_for(key):
            current = self._data.get(key)
            updated = fn(copy.deepcopy(current) if current is not None else None)
            self._data[key] = updated
            return copy.deepcopy(updated)

    def __len__(self) -> int:
        return len(self._data)


def default_filter_rules() -> list[FilterRule]:
    return [
        FilterRule(
            id="boost_important",
            name="Boost High Importance Content",
            condition=[
                MetadataFilter("metadata.importance", FilterOperator.RANGE, [0.8, 1.0])
            ],
            action=FilterAction.BOOST,
            strength=0.2,
            priority=1,
        ),
        FilterRule(
            id="demote_test_in_prod",
            name="Demote Test Code in Production Context",
            condition=[MetadataFilter("metadata.type", FilterOperator.CONTAINS, "test")],
            action=FilterAction.DEMOTE,
            strength=0.3,
            priority=2,
            applicable_contexts=["production"],
        ),
    ]


class FilterRuleStore(InMemoryStore[FilterRule]):
    """Filter rules keyed by rule id, seeded with the default rules."""

    def __init__(self, seed_defaults: bool = True) -> None:
        super().__init__()
        if seed_defaults:
            for rule in default_filter_rules():
                self.put(rule.id, rule)


class UserPreferenceStore(InMemoryStore[UserPreference]):
    """Learned preferences keyed by user id."""
