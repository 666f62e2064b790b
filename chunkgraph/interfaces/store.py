"""Keyed store interface for shared mutable ranking state.

# CONCURRENCY: Many readers, at most one writer per key. Implementations
#   enforce this at the store boundary so callers never lock themselves.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class KeyValueStore(ABC, Generic[T]):
    @abstractmethod
    def get(self, key: str) -> T | None:
        """Return the current value for ``key`` or None."""

    @abstractmethod
    def put(self, key: str, value: T) -> None:
        """Insert or replace the value for ``key``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it existed."""

    @abstractmethod
    def values(self) -> list[T]:
        """Snapshot of all values in insertion order."""

    @abstractmethod
    def update(self, key: str, fn: Callable[[T | None], T]) -> T:
        """Atomically read-modify-write the value for ``key``."""
