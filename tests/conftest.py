"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Generator, Iterable, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from bet_analytics.domain.aggregation import AggregationEngine
from bet_analytics.domain.models import SelectionData, SelectionStatus, SettlementEvent, TicketStatus
from bet_analytics.domain.settlement import build_settlement_event
from bet_analytics.domain.stores import ProjectionStores
from bet_analytics.infrastructure.database.models import Base
from bet_analytics.infrastructure.database.session import build_session_factory
from bet_analytics.infrastructure.memory_store import in_memory_stores

SETTLED_AT = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Create test database and session factory"""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield build_session_factory(engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def stores() -> ProjectionStores:
    return in_memory_stores()


@pytest.fixture
def engine(stores: ProjectionStores) -> AggregationEngine:
    return AggregationEngine(stores, timezone_name="UTC")


@pytest.fixture
def make_event() -> Callable[..., SettlementEvent]:
    """Build classified settlement events with sensible defaults"""
    ticket_ids = itertools.count(1)

    def _make(
        stake: str = "100.00",
        payout: str = "150.00",
        potential: Optional[str] = "250.00",
        ticket_status: TicketStatus = TicketStatus.WIN,
        user_id: int = 1,
        provider_id: int = 10,
        total_odd: str = "2.50",
        settled_at: datetime = SETTLED_AT,
        selections: Optional[Iterable[SelectionData]] = None,
    ) -> SettlementEvent:
        if selections is None:
            selections = [SelectionData("Match Result", SelectionStatus.WON, tournament_id=100)]
        event = build_settlement_event(
            ticket_id=next(ticket_ids),
            user_id=user_id,
            provider_id=provider_id,
            stake=Decimal(stake),
            total_odd=Decimal(total_odd),
            actual_payout=Decimal(payout),
            potential_payout=Decimal(potential) if potential is not None else None,
            ticket_status=ticket_status,
            settled_at=settled_at,
            selections=selections,
        )
        assert event is not None, "fixture builds settled tickets only"
        return event

    return _make


@pytest.fixture
def win_event(make_event) -> Callable[..., SettlementEvent]:
    """Full win: stake 50, payout 125, potential 125"""
    return lambda **kw: make_event(stake="50.00", payout="125.00", potential="125.00", **kw)


@pytest.fixture
def loss_event(make_event) -> Callable[..., SettlementEvent]:
    """Total loss: stake 100, payout 0"""
    return lambda **kw: make_event(
        stake="100.00", payout="0.00", potential="300.00", ticket_status=TicketStatus.LOST, **kw
    )
