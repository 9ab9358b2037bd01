"""In-process projection store with optimistic versioning"""

import threading
from dataclasses import replace
from typing import Dict, Generic, List, Optional, TypeVar
from bet_analytics.domain.exceptions import ConcurrentUpdateError
from bet_analytics.domain.stores import ProjectionStores

K = TypeVar("K")
P = TypeVar("P")


class InMemoryProjectionStore(Generic[K, P]):
    """Dict-backed store; safe to share between worker threads"""

    def __init__(self, name: str):
        self.name = name
        self._rows: Dict[K, P] = {}
        self._lock = threading.Lock()

    def find_by_key(self, key: K) -> Optional[P]:
        with self._lock:
            return self._rows.get(key)

    def save(self, projection: P) -> P:
        with self._lock:
            stored = self._rows.get(projection.key)
            stored_version = stored.version if stored is not None else 0
            if stored_version != projection.version:
                raise ConcurrentUpdateError(f"{self.name}:{projection.key}", projection.version)

            saved = replace(projection, version=projection.version + 1)
            self._rows[projection.key] = saved
            return saved

    def find_by_user(self, user_id: int) -> List[P]:
        with self._lock:
            return [row for key, row in self._rows.items() if key.user_id == user_id]


def in_memory_stores() -> ProjectionStores:
    """Fresh, empty stores for every projection kind"""
    return ProjectionStores(
        overall=InMemoryProjectionStore("overall"),
        month=InMemoryProjectionStore("month"),
        provider=InMemoryProjectionStore("provider"),
        market=InMemoryProjectionStore("market"),
        tournament=InMemoryProjectionStore("tournament"),
    )
