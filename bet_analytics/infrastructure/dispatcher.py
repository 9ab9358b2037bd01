"""Settlement event dispatcher - bounded async worker pool with retry and dead-lettering"""

import asyncio
import logging
from typing import FrozenSet, List, Optional
from bet_analytics.config import settings
from bet_analytics.domain.aggregation import AggregationEngine
from bet_analytics.domain.exceptions import ProjectionUpdateError
from bet_analytics.domain.models import SettlementEvent
from bet_analytics.domain.stores import DeadLetterStore
from bet_analytics.infrastructure.observability.logging import log_dead_letter
from bet_analytics.infrastructure.observability.metrics import dead_letter_counter, dispatch_retry_counter

logger = logging.getLogger(__name__)


class SettlementEventDispatcher:
    """
    Runs aggregation off the settlement path.

    Events are queued (bounded) and consumed by a fixed number of worker
    tasks. Each event is applied in a worker thread and retried with
    exponential backoff; once attempts run out it is logged as failed and
    parked in the dead-letter store. Settlement itself never waits on or
    fails because of aggregation.
    """

    def __init__(
        self,
        engine: AggregationEngine,
        dead_letters: Optional[DeadLetterStore] = None,
        workers: int | None = None,
        queue_capacity: int | None = None,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
        backoff_multiplier: float | None = None,
    ):
        self.engine = engine
        self.dead_letters = dead_letters
        self.workers = workers if workers is not None else settings.analytics_workers
        self.queue_capacity = queue_capacity if queue_capacity is not None else settings.analytics_queue_capacity
        self.max_attempts = max_attempts if max_attempts is not None else settings.aggregation_max_attempts
        self.backoff_base = backoff_base if backoff_base is not None else settings.aggregation_backoff_base
        self.backoff_multiplier = (
            backoff_multiplier if backoff_multiplier is not None else settings.aggregation_backoff_multiplier
        )

        if self.workers < 1 or self.queue_capacity < 1 or self.max_attempts < 1:
            raise ValueError("workers, queue_capacity and max_attempts must be at least 1")

        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Spawn the worker tasks on the running loop"""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.queue_capacity)
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"analytics-{i}") for i in range(self.workers)
        ]
        logger.info(
            "Analytics dispatcher started",
            extra={"workers": self.workers, "queue_capacity": self.queue_capacity},
        )

    async def publish(self, event: SettlementEvent) -> None:
        """Queue an event, waiting while the queue is full"""
        if not self.running:
            raise RuntimeError("Dispatcher is not started")
        await self._queue.put(event)

    async def join(self) -> None:
        """Wait until every queued event was processed"""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        """Drain the queue, then cancel the workers"""
        if not self.running:
            return
        await self.join()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Analytics dispatcher stopped")

    async def _worker(self, index: int) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.process(event)
            except Exception:
                # Keep the worker alive for the next event
                logger.exception(
                    "Unexpected error while dispatching settlement",
                    extra={"ticket_id": event.ticket_id, "worker": index},
                )
            finally:
                self._queue.task_done()

    async def process(self, event: SettlementEvent, completed: FrozenSet[str] = frozenset()) -> bool:
        """
        Apply one event with retries.

        Retry strategy:
        - Exponential backoff: base, base*m, base*m^2, ... between attempts
        - Each retry skips the sub-updates that already committed
        - After the last attempt the event goes to the dead-letter store

        Returns:
            True when every projection was updated
        """
        attempt = 0
        error: Optional[ProjectionUpdateError] = None

        while attempt < self.max_attempts:
            try:
                await asyncio.to_thread(self.engine.apply, event, completed)
                return True
            except Exception as e:
                attempt += 1
                error = as_update_error(e, completed)
                completed = error.completed

                logger.error(
                    f"Error processing analytics for ticket {event.ticket_id} (attempt {attempt}): {e}",
                    extra={"ticket_id": event.ticket_id, "user_id": event.user_id, "attempt": attempt},
                )

                if attempt >= self.max_attempts:
                    break

                dispatch_retry_counter.inc()
                backoff = self.backoff_base * (self.backoff_multiplier ** (attempt - 1))
                await asyncio.sleep(backoff)

        self._park(event, error, attempt, completed)
        return False

    def _park(self, event: SettlementEvent, error: ProjectionUpdateError, attempts: int, completed) -> None:
        dead_letter_counter.inc()
        log_dead_letter(event.ticket_id, event.user_id, attempts, str(error), completed)

        if self.dead_letters is None:
            return
        try:
            self.dead_letters.record_failure(event, str(error), attempts, completed)
        except Exception as e:
            logger.error(
                f"Could not persist failed settlement: {e}",
                extra={"ticket_id": event.ticket_id, "user_id": event.user_id},
            )

    async def retry_failed(self, limit: int = 100) -> int:
        """
        Re-run parked settlements once each.

        Returns:
            Number of dead letters resolved
        """
        if self.dead_letters is None:
            return 0

        resolved = 0
        for dead_letter in await asyncio.to_thread(self.dead_letters.pending, limit):
            try:
                await asyncio.to_thread(self.engine.apply, dead_letter.event, dead_letter.completed)
            except Exception as e:
                error = as_update_error(e, dead_letter.completed)
                await asyncio.to_thread(
                    self.dead_letters.mark_attempted, dead_letter.id, str(error), error.completed
                )
                logger.warning(
                    f"Replay of failed settlement still failing: {e}",
                    extra={"ticket_id": dead_letter.event.ticket_id, "dead_letter_id": str(dead_letter.id)},
                )
                continue

            await asyncio.to_thread(self.dead_letters.mark_resolved, dead_letter.id)
            resolved += 1

        return resolved


def as_update_error(error: Exception, completed: FrozenSet[str]) -> ProjectionUpdateError:
    """Wrap failures raised outside a sub-update; what already committed is unchanged"""
    if isinstance(error, ProjectionUpdateError):
        return error
    return ProjectionUpdateError("settlement", frozenset(completed), error)
