"""Projection store port - the key-value contract the aggregation engine writes through"""

import uuid
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Protocol, TypeVar
from bet_analytics.domain.models import (
    DeadLetter,
    MarketKey,
    MarketProjection,
    MonthKey,
    MonthProjection,
    OverallKey,
    OverallProjection,
    ProviderKey,
    ProviderProjection,
    SettlementEvent,
    TournamentKey,
    TournamentProjection,
)

K = TypeVar("K")
P = TypeVar("P")


class ProjectionStore(Protocol[K, P]):
    """
    Find-by-key / save storage for one projection kind.

    ``save`` compares the projection's ``version`` with the stored row: 0
    means "create", anything else must match the stored version. On success
    it returns the projection with its version bumped; on mismatch it raises
    ConcurrentUpdateError and writes nothing.
    """

    def find_by_key(self, key: K) -> Optional[P]:
        ...

    def save(self, projection: P) -> P:
        ...

    def find_by_user(self, user_id: int) -> List[P]:
        ...


@dataclass
class ProjectionStores:
    """One store per projection kind"""

    overall: ProjectionStore[OverallKey, OverallProjection]
    month: ProjectionStore[MonthKey, MonthProjection]
    provider: ProjectionStore[ProviderKey, ProviderProjection]
    market: ProjectionStore[MarketKey, MarketProjection]
    tournament: ProjectionStore[TournamentKey, TournamentProjection]


class DeadLetterStore(Protocol):
    """Durable parking place for settlements that could not be aggregated"""

    def record_failure(
        self, event: SettlementEvent, error: str, attempts: int, completed: FrozenSet[str]
    ) -> uuid.UUID:
        ...

    def pending(self, limit: int = 100) -> List[DeadLetter]:
        ...

    def mark_attempted(self, dead_letter_id: uuid.UUID, error: str, completed: FrozenSet[str]) -> None:
        ...

    def mark_resolved(self, dead_letter_id: uuid.UUID) -> None:
        ...
