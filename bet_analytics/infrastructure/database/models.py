"""SQLAlchemy ORM models for the analytics projection tables"""

import uuid
from sqlalchemy import Column, String, BigInteger, DateTime, Integer, Numeric, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TicketPerformanceColumns:
    """Counters shared by every per-ticket projection table"""

    total_tickets = Column(Integer, nullable=False, default=0)
    tickets_won = Column(Integer, nullable=False, default=0)
    tickets_lost = Column(Integer, nullable=False, default=0)
    tickets_void = Column(Integer, nullable=False, default=0)
    tickets_cashed_out = Column(Integer, nullable=False, default=0)

    tickets_full_won = Column(Integer, nullable=False, default=0)
    tickets_partial_won = Column(Integer, nullable=False, default=0)
    tickets_break_even = Column(Integer, nullable=False, default=0)
    tickets_partial_lost = Column(Integer, nullable=False, default=0)
    tickets_total_lost = Column(Integer, nullable=False, default=0)

    total_stake = Column(Numeric(15, 2), nullable=False, default=0)
    total_profit = Column(Numeric(15, 2), nullable=False, default=0)

    roi = Column(Numeric(15, 4), nullable=False, default=0)
    win_rate = Column(Numeric(5, 2), nullable=False, default=0)
    success_rate = Column(Numeric(5, 2), nullable=False, default=0)

    first_bet_at = Column(DateTime(timezone=True), nullable=True)
    last_settled_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class PerformanceOverall(TicketPerformanceColumns, Base):
    """All-time performance and gamification records per user"""

    __tablename__ = "performance_overall"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)

    total_return = Column(Numeric(15, 2), nullable=False, default=0)
    total_odds = Column(Numeric(15, 4), nullable=False, default=0)
    avg_odd = Column(Numeric(10, 4), nullable=True)
    avg_stake = Column(Numeric(15, 2), nullable=True)

    current_streak = Column(Integer, nullable=False, default=0)
    best_win_streak = Column(Integer, nullable=False, default=0)
    worst_loss_streak = Column(Integer, nullable=False, default=0)
    biggest_win = Column(Numeric(15, 2), nullable=True)
    biggest_loss = Column(Numeric(15, 2), nullable=True)
    best_roi_ticket = Column(Numeric(15, 4), nullable=True)


class PerformanceByMonth(TicketPerformanceColumns, Base):
    """Performance per calendar month"""

    __tablename__ = "performance_by_month"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    year = Column(Integer, primary_key=True, autoincrement=False)
    month = Column(Integer, primary_key=True, autoincrement=False)


class PerformanceByProvider(TicketPerformanceColumns, Base):
    """Performance per betting provider"""

    __tablename__ = "performance_by_provider"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    provider_id = Column(BigInteger, primary_key=True, autoincrement=False)

    total_odds = Column(Numeric(15, 4), nullable=False, default=0)
    avg_odd = Column(Numeric(10, 4), nullable=True)
    avg_stake = Column(Numeric(15, 2), nullable=True)


class PerformanceByTournament(TicketPerformanceColumns, Base):
    """Performance per tournament, one entry per ticket touching it"""

    __tablename__ = "performance_by_tournament"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    tournament_id = Column(BigInteger, primary_key=True, autoincrement=False)


class PerformanceByMarket(Base):
    """Performance per market type, counted per selection"""

    __tablename__ = "performance_by_market"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    market_type = Column(String(100), primary_key=True)

    total_selections = Column(Integer, nullable=False, default=0)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    voids = Column(Integer, nullable=False, default=0)
    unique_tickets = Column(Integer, nullable=False, default=0)

    tickets_full_won = Column(Integer, nullable=False, default=0)
    tickets_partial_won = Column(Integer, nullable=False, default=0)
    tickets_break_even = Column(Integer, nullable=False, default=0)
    tickets_partial_lost = Column(Integer, nullable=False, default=0)
    tickets_total_lost = Column(Integer, nullable=False, default=0)

    total_stake = Column(Numeric(15, 2), nullable=False, default=0)
    total_profit = Column(Numeric(15, 2), nullable=False, default=0)
    total_odds = Column(Numeric(15, 4), nullable=False, default=0)

    roi = Column(Numeric(15, 4), nullable=False, default=0)
    win_rate = Column(Numeric(5, 2), nullable=False, default=0)
    success_rate = Column(Numeric(5, 2), nullable=False, default=0)
    avg_odd = Column(Numeric(10, 4), nullable=True)

    first_bet_at = Column(DateTime(timezone=True), nullable=True)
    last_settled_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class FailedSettlement(Base):
    """Dead-letter queue for settlements whose aggregation exhausted its retries"""

    __tablename__ = "failed_settlement"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_id = Column(BigInteger, nullable=False, index=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    completed_projections = Column(JSON, nullable=False, default=list)
    error = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
