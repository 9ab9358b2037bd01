"""Data access layer for analytics projections and failed settlements"""

import uuid
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Generic, List, Optional, Type, TypeVar
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from bet_analytics.domain.exceptions import ConcurrentUpdateError, ProjectionStoreError
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
from bet_analytics.domain.payloads import SettlementPayload
from bet_analytics.domain.stores import ProjectionStores
from bet_analytics.infrastructure.database.models import (
    FailedSettlement,
    PerformanceByMarket,
    PerformanceByMonth,
    PerformanceByProvider,
    PerformanceByTournament,
    PerformanceOverall,
)
from bet_analytics.utils.date_utils import ensure_utc

K = TypeVar("K")
P = TypeVar("P")

DATETIME_FIELDS = {"first_bet_at", "last_settled_at"}


class ProjectionRepository(Generic[K, P]):
    """
    Projection store backed by one table.

    Every call runs in its own short transaction, so each save commits on its
    own. Updates are guarded by the row version:
    ``UPDATE ... WHERE <key> AND version = :expected``.
    """

    def __init__(self, session_factory: sessionmaker, model, projection_cls: Type[P], key_cls: Type[K]):
        self.session_factory = session_factory
        self.model = model
        self.projection_cls = projection_cls
        self.key_cls = key_cls
        self.key_names = [f.name for f in fields(key_cls)]
        self.value_names = [f.name for f in fields(projection_cls) if f.name not in ("key", "version")]

    def find_by_key(self, key: K) -> Optional[P]:
        """Fetch the projection row for a key, if it exists"""
        try:
            with self.session_factory() as db:
                row = db.execute(select(self.model).where(*self._key_filter(key))).scalar_one_or_none()
                return self._to_projection(row) if row is not None else None
        except SQLAlchemyError as e:
            raise ProjectionStoreError(f"Failed to read {self.model.__tablename__}: {e}") from e

    def find_by_user(self, user_id: int) -> List[P]:
        """Fetch every projection row of a user"""
        try:
            with self.session_factory() as db:
                rows = db.execute(select(self.model).where(self.model.user_id == user_id)).scalars().all()
                return [self._to_projection(row) for row in rows]
        except SQLAlchemyError as e:
            raise ProjectionStoreError(f"Failed to read {self.model.__tablename__}: {e}") from e

    def save(self, projection: P) -> P:
        """
        Insert (version 0) or conditionally update the row.

        Raises:
            ConcurrentUpdateError: The row was created or updated by someone else
            ProjectionStoreError: Any other database failure
        """
        values = self._to_values(projection)
        new_version = projection.version + 1
        label = f"{self.model.__tablename__}:{projection.key}"

        try:
            with self.session_factory.begin() as db:
                if projection.version == 0:
                    db.add(self.model(**values, version=new_version))
                    db.flush()
                else:
                    result = db.execute(
                        update(self.model)
                        .where(*self._key_filter(projection.key), self.model.version == projection.version)
                        .values(**values, version=new_version)
                    )
                    if result.rowcount != 1:
                        raise ConcurrentUpdateError(label, projection.version)
        except IntegrityError as e:
            # Another writer inserted the row first
            raise ConcurrentUpdateError(label, projection.version) from e
        except SQLAlchemyError as e:
            raise ProjectionStoreError(f"Failed to save {label}: {e}") from e

        return replace(projection, version=new_version)

    def _key_filter(self, key: K) -> list:
        return [getattr(self.model, name) == getattr(key, name) for name in self.key_names]

    def _to_values(self, projection: P) -> Dict[str, Any]:
        values = {name: getattr(projection.key, name) for name in self.key_names}
        for name in self.value_names:
            value = getattr(projection, name)
            values[name] = ensure_utc(value) if name in DATETIME_FIELDS else value
        return values

    def _to_projection(self, row) -> P:
        key = self.key_cls(**{name: getattr(row, name) for name in self.key_names})
        values = {}
        for name in self.value_names:
            value = getattr(row, name)
            values[name] = ensure_utc(value) if name in DATETIME_FIELDS else value
        return self.projection_cls(key=key, version=row.version, **values)


def sql_stores(session_factory: sessionmaker) -> ProjectionStores:
    """Table-backed stores for every projection kind"""
    return ProjectionStores(
        overall=ProjectionRepository(session_factory, PerformanceOverall, OverallProjection, OverallKey),
        month=ProjectionRepository(session_factory, PerformanceByMonth, MonthProjection, MonthKey),
        provider=ProjectionRepository(session_factory, PerformanceByProvider, ProviderProjection, ProviderKey),
        market=ProjectionRepository(session_factory, PerformanceByMarket, MarketProjection, MarketKey),
        tournament=ProjectionRepository(
            session_factory, PerformanceByTournament, TournamentProjection, TournamentKey
        ),
    )


class FailedSettlementRepository:
    """Repository for the dead-letter queue"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def record_failure(
        self, event: SettlementEvent, error: str, attempts: int, completed: FrozenSet[str]
    ) -> uuid.UUID:
        """Persist a settlement that exhausted its retries"""
        with self.session_factory.begin() as db:
            db_failed = FailedSettlement(
                ticket_id=event.ticket_id,
                user_id=event.user_id,
                payload=SettlementPayload.from_event(event).model_dump(mode="json"),
                completed_projections=sorted(completed),
                error=error,
                attempts=attempts,
                last_attempt_at=datetime.now(timezone.utc),
            )
            db.add(db_failed)
            db.flush()  # Get ID before the transaction closes
            return db_failed.id

    def pending(self, limit: int = 100) -> List[DeadLetter]:
        """Oldest unresolved failures first"""
        with self.session_factory() as db:
            rows = (
                db.execute(
                    select(FailedSettlement)
                    .where(FailedSettlement.status == "pending")
                    .order_by(FailedSettlement.created_at.asc())
                    .limit(limit)
                )
                .scalars()
                .all()
            )
            return [
                DeadLetter(
                    id=row.id,
                    event=SettlementPayload.model_validate(row.payload).to_event(),
                    attempts=row.attempts,
                    completed=frozenset(row.completed_projections or []),
                    error=row.error,
                )
                for row in rows
            ]

    def mark_attempted(self, dead_letter_id: uuid.UUID, error: str, completed: FrozenSet[str]) -> None:
        """Record another failed replay attempt"""
        with self.session_factory.begin() as db:
            row = db.get(FailedSettlement, dead_letter_id)
            if row is None:
                return
            row.attempts += 1
            row.error = error
            row.completed_projections = sorted(completed)
            row.last_attempt_at = datetime.now(timezone.utc)

    def mark_resolved(self, dead_letter_id: uuid.UUID) -> None:
        with self.session_factory.begin() as db:
            row = db.get(FailedSettlement, dead_letter_id)
            if row is None:
                return
            row.status = "resolved"
            row.last_attempt_at = datetime.now(timezone.utc)
