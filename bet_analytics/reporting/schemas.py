"""Pydantic schemas for the read-side performance summaries"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel


class TicketPerformanceSummary(BaseModel):
    """Counters and rates shared by every per-ticket summary"""

    total_tickets: int
    tickets_won: int
    tickets_lost: int
    tickets_void: int
    tickets_cashed_out: int
    tickets_full_won: int
    tickets_partial_won: int
    tickets_break_even: int
    tickets_partial_lost: int
    tickets_total_lost: int
    total_stake: Decimal
    total_profit: Decimal
    roi: Decimal
    win_rate: Decimal
    success_rate: Decimal
    first_bet_at: Optional[datetime] = None
    last_settled_at: Optional[datetime] = None


class StreakSummary(BaseModel):
    """Gamification records of a user"""

    current_streak: int
    best_win_streak: int
    worst_loss_streak: int
    biggest_win: Optional[Decimal] = None
    biggest_loss: Optional[Decimal] = None
    best_roi_ticket: Optional[Decimal] = None


class OverallSummary(TicketPerformanceSummary):
    """All-time performance of a user"""

    user_id: int
    total_return: Decimal
    avg_odd: Optional[Decimal] = None
    avg_stake: Optional[Decimal] = None
    streaks: StreakSummary


class MonthSummary(TicketPerformanceSummary):
    year: int
    month: int


class ProviderSummary(TicketPerformanceSummary):
    provider_id: int
    avg_odd: Optional[Decimal] = None
    avg_stake: Optional[Decimal] = None


class TournamentSummary(TicketPerformanceSummary):
    tournament_id: int


class MarketSummary(BaseModel):
    """Per-market performance, counted per selection"""

    market_type: str
    total_selections: int
    wins: int
    losses: int
    voids: int
    unique_tickets: int
    tickets_full_won: int
    tickets_partial_won: int
    tickets_break_even: int
    tickets_partial_lost: int
    tickets_total_lost: int
    total_stake: Decimal
    total_profit: Decimal
    total_odds: Decimal
    roi: Decimal
    win_rate: Decimal
    success_rate: Decimal
    avg_odd: Optional[Decimal] = None
    first_bet_at: Optional[datetime] = None
    last_settled_at: Optional[datetime] = None


class PerformanceReport(BaseModel):
    """Every summary of a user in one document"""

    user_id: int
    overall: Optional[OverallSummary] = None
    months: List[MonthSummary]
    providers: List[ProviderSummary]
    markets: List[MarketSummary]
    tournaments: List[TournamentSummary]
