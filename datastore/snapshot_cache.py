from __future__ import annotations

from functools import lru_cache
from threading import Lock
from typing import Optional

from services.aggregator import Snapshot


class SnapshotCache:
    """Holds the most recently published snapshot.

    Publishing swaps the reference; a published snapshot is never mutated, so
    readers can use what ``get`` returns without further locking.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[Snapshot] = None
        self._lock = Lock()

    def publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def get(self) -> Optional[Snapshot]:
        with self._lock:
            return self._snapshot


@lru_cache
def build_default_cache() -> SnapshotCache:
    return SnapshotCache()
