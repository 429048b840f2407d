"""Process-wide key/value memo used for suburb centroid lookups."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Protocol, TypeVar

V = TypeVar("V")


class KeyValueStore(Protocol[V]):
    def get(self, key: str) -> V | None: ...

    def set(self, key: str, value: V) -> bool: ...


class InMemoryStore(Generic[V]):
    """Bounded dict guarded by a lock.

    Once ``max_entries`` keys are held, new keys are refused; existing keys can
    still be overwritten (last write wins). Entries live as long as the store.
    """

    def __init__(self, max_entries: int = 512) -> None:
        self.max_entries = max_entries
        self.entries: dict[str, V] = {}
        self.lock = threading.Lock()

    def get(self, key: str) -> V | None:
        with self.lock:
            return self.entries.get(key)

    def set(self, key: str, value: V) -> bool:
        with self.lock:
            if key not in self.entries and len(self.entries) >= self.max_entries:
                return False
            self.entries[key] = value
            return True

    def __len__(self) -> int:
        with self.lock:
            return len(self.entries)


def get_or_compute(
    store: KeyValueStore[V],
    key: str,
    compute: Callable[[], V | None],
) -> V | None:
    cached = store.get(key)
    if cached is not None:
        return cached
    value = compute()
    if value is not None:
        store.set(key, value)
    return value
