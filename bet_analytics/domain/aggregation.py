"""Aggregation engine - folds one settlement into the five analytics projections"""

import logging
import time
from typing import Callable, FrozenSet, Iterator, Optional, Tuple
from bet_analytics.config import settings
from bet_analytics.domain.exceptions import ConcurrentUpdateError, ProjectionUpdateError
from bet_analytics.domain.models import SettlementEvent
from bet_analytics.domain.reducers import (
    market_keys,
    month_key,
    overall_key,
    provider_key,
    reduce_market,
    reduce_month,
    reduce_overall,
    reduce_provider,
    reduce_tournament,
    tournament_keys,
)
from bet_analytics.domain.stores import ProjectionStore, ProjectionStores
from bet_analytics.infrastructure.observability.logging import log_aggregation
from bet_analytics.infrastructure.observability.metrics import (
    aggregation_latency_histogram,
    record_projection_conflict,
    record_projection_failure,
    record_settlement,
)

logger = logging.getLogger(__name__)

Reducer = Callable[[Optional[object], object, SettlementEvent], object]
SubUpdate = Tuple[object, ProjectionStore, Reducer]


class AggregationEngine:
    """
    Applies settlement events to the overall, month, provider, market and
    tournament projections.

    Sub-updates run one after another, each as find -> reduce -> save. They
    commit independently: when one fails, the earlier ones stay saved and the
    failure is raised as ProjectionUpdateError listing what already committed.
    """

    def __init__(
        self,
        stores: ProjectionStores,
        timezone_name: str | None = None,
        conflict_retries: int | None = None,
    ):
        self.stores = stores
        self.timezone_name = timezone_name if timezone_name is not None else settings.settlement_timezone
        self.conflict_retries = (
            conflict_retries if conflict_retries is not None else settings.projection_conflict_retries
        )
        if self.conflict_retries < 1:
            raise ValueError("conflict_retries must be at least 1")

    def sub_updates(self, event: SettlementEvent) -> Iterator[SubUpdate]:
        """Projection keys touched by the event, in application order"""
        yield overall_key(event), self.stores.overall, reduce_overall
        yield month_key(event, self.timezone_name), self.stores.month, reduce_month
        yield provider_key(event), self.stores.provider, reduce_provider
        for key in market_keys(event):
            yield key, self.stores.market, reduce_market
        for key in tournament_keys(event):
            yield key, self.stores.tournament, reduce_tournament

    def apply(self, event: SettlementEvent, completed: FrozenSet[str] = frozenset()) -> FrozenSet[str]:
        """
        Apply a settlement to every projection it touches.

        Args:
            event: Settled ticket facts
            completed: Labels of sub-updates already saved by an earlier attempt;
                they are skipped

        Returns:
            Labels of every sub-update now saved for this event

        Raises:
            ProjectionUpdateError: On the first sub-update that fails
        """
        start_time = time.time()
        done = set(completed)

        logger.debug(
            "Processing settlement",
            extra={"ticket_id": event.ticket_id, "user_id": event.user_id, "skipping": sorted(done)},
        )

        # Every key is resolved before the first write
        try:
            updates = list(self.sub_updates(event))
        except Exception as e:
            logger.error(
                f"Error resolving projection keys: {e}",
                extra={"ticket_id": event.ticket_id, "user_id": event.user_id},
            )
            raise ProjectionUpdateError("keys", frozenset(done), e) from e

        for key, store, reducer in updates:
            if key.label in done:
                continue
            try:
                self._update(key, store, reducer, event)
            except Exception as e:
                record_projection_failure(key.label)
                logger.error(
                    f"Error updating {key.label}: {e}",
                    extra={"ticket_id": event.ticket_id, "user_id": event.user_id, "projection": key.label},
                )
                raise ProjectionUpdateError(key.label, frozenset(done), e) from e
            done.add(key.label)

        duration = time.time() - start_time
        aggregation_latency_histogram.observe(duration)
        record_settlement(event.financial_status.value)
        log_aggregation(event.ticket_id, event.user_id, event.financial_status.value, done, duration * 1000)

        return frozenset(done)

    def _update(self, key, store: ProjectionStore, reducer: Reducer, event: SettlementEvent) -> None:
        """Read-reduce-save one row, re-reading when another writer got there first"""
        attempt = 0
        while True:
            current = store.find_by_key(key)
            try:
                store.save(reducer(current, key, event))
                return
            except ConcurrentUpdateError:
                attempt += 1
                record_projection_conflict(key.label)
                if attempt >= self.conflict_retries:
                    raise
                logger.debug(
                    "Projection version moved, retrying",
                    extra={"ticket_id": event.ticket_id, "projection": key.label, "attempt": attempt},
                )
