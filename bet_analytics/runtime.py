"""Analytics runtime factory - wires stores, engine, dispatcher and summaries together"""

from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import sessionmaker
from bet_analytics.config import settings
from bet_analytics.domain.aggregation import AggregationEngine
from bet_analytics.domain.stores import DeadLetterStore, ProjectionStores
from bet_analytics.infrastructure.database.models import Base
from bet_analytics.infrastructure.database.repositories import FailedSettlementRepository, sql_stores
from bet_analytics.infrastructure.database.session import build_engine, build_session_factory
from bet_analytics.infrastructure.dispatcher import SettlementEventDispatcher
from bet_analytics.infrastructure.memory_store import in_memory_stores
from bet_analytics.infrastructure.observability.logging import setup_logging
from bet_analytics.reporting.summaries import AnalyticsSummaryService


@dataclass
class AnalyticsRuntime:
    """Everything a host application needs to feed and read the analytics"""

    stores: ProjectionStores
    engine: AggregationEngine
    dispatcher: SettlementEventDispatcher
    summaries: AnalyticsSummaryService
    dead_letters: Optional[DeadLetterStore] = None


def create_runtime(
    stores: ProjectionStores,
    dead_letters: Optional[DeadLetterStore] = None,
) -> AnalyticsRuntime:
    """Build the runtime around already constructed stores"""
    engine = AggregationEngine(stores)
    return AnalyticsRuntime(
        stores=stores,
        engine=engine,
        dispatcher=SettlementEventDispatcher(engine, dead_letters=dead_letters),
        summaries=AnalyticsSummaryService(stores),
        dead_letters=dead_letters,
    )


def create_database_runtime(session_factory: sessionmaker | None = None) -> AnalyticsRuntime:
    """Runtime persisting projections and dead letters through SQLAlchemy"""
    setup_logging(settings.log_level)

    if session_factory is None:
        db_engine = build_engine()
        Base.metadata.create_all(bind=db_engine)
        session_factory = build_session_factory(db_engine)

    return create_runtime(sql_stores(session_factory), FailedSettlementRepository(session_factory))


def create_memory_runtime() -> AnalyticsRuntime:
    """Runtime keeping projections in process memory, without dead-letter persistence"""
    setup_logging(settings.log_level)
    return create_runtime(in_memory_stores())
