"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple

ZERO = Decimal("0")


class TicketStatus(str, Enum):
    """Ticket state as reported by the betting provider"""

    OPEN = "OPEN"
    WIN = "WIN"
    LOST = "LOST"
    VOID = "VOID"
    CASHOUT = "CASHOUT"


class FinancialStatus(str, Enum):
    """Real monetary outcome of a ticket, ordered from best to worst after PENDING"""

    PENDING = "PENDING"
    FULL_WIN = "FULL_WIN"  # payout >= potential payout
    PARTIAL_WIN = "PARTIAL_WIN"  # stake < payout < potential payout
    BREAK_EVEN = "BREAK_EVEN"  # payout == stake
    PARTIAL_LOSS = "PARTIAL_LOSS"  # 0 < payout < stake
    TOTAL_LOSS = "TOTAL_LOSS"  # payout == 0


class SelectionStatus(str, Enum):
    """Outcome of a single selection inside a ticket"""

    PENDING = "PENDING"
    WON = "WON"
    HALF_WON = "HALF_WON"  # e.g. asian handicap
    LOST = "LOST"
    HALF_LOST = "HALF_LOST"
    VOID = "VOID"
    CASHOUT = "CASHOUT"


class OutcomeBucket(str, Enum):
    """Three-way reduction used by the won/lost/void counters"""

    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"
    NONE = "NONE"


@dataclass(frozen=True)
class ClassificationInput:
    """Ticket amounts needed to classify its financial outcome"""

    stake: Decimal
    actual_payout: Optional[Decimal]
    potential_payout: Optional[Decimal]
    ticket_status: TicketStatus


@dataclass(frozen=True)
class ClassificationResult:
    """Output of the financial outcome classifier"""

    financial_status: FinancialStatus
    profit_loss: Decimal
    roi: Decimal


@dataclass(frozen=True)
class SelectionData:
    """Per-selection facts needed by the market and tournament projections"""

    market_type: str
    selection_status: SelectionStatus
    tournament_id: Optional[int] = None
    event_date: Optional[date] = None


@dataclass(frozen=True)
class SettlementEvent:
    """Fact emitted once a ticket leaves the open state"""

    ticket_id: int
    user_id: int
    provider_id: int
    stake: Decimal
    total_odd: Decimal
    actual_payout: Decimal
    profit_loss: Decimal
    roi: Decimal
    ticket_status: TicketStatus
    financial_status: FinancialStatus
    settled_at: datetime
    selections: Tuple[SelectionData, ...] = ()


# Projection keys


@dataclass(frozen=True)
class OverallKey:
    user_id: int

    @property
    def label(self) -> str:
        return "overall"


@dataclass(frozen=True)
class MonthKey:
    user_id: int
    year: int
    month: int

    @property
    def label(self) -> str:
        return f"month:{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class ProviderKey:
    user_id: int
    provider_id: int

    @property
    def label(self) -> str:
        return f"provider:{self.provider_id}"


@dataclass(frozen=True)
class MarketKey:
    user_id: int
    market_type: str

    @property
    def label(self) -> str:
        return f"market:{self.market_type}"


@dataclass(frozen=True)
class TournamentKey:
    user_id: int
    tournament_id: int

    @property
    def label(self) -> str:
        return f"tournament:{self.tournament_id}"


# Projections


@dataclass(frozen=True, kw_only=True)
class TicketPerformance:
    """
    Per-ticket counters shared by the overall, month, provider and tournament projections.

    Derived fields (roi, win_rate, success_rate) are always recomputed from
    the counters by the reducers, never adjusted on their own.
    """

    total_tickets: int = 0
    tickets_won: int = 0
    tickets_lost: int = 0
    tickets_void: int = 0
    tickets_cashed_out: int = 0

    tickets_full_won: int = 0
    tickets_partial_won: int = 0
    tickets_break_even: int = 0
    tickets_partial_lost: int = 0
    tickets_total_lost: int = 0

    total_stake: Decimal = ZERO
    total_profit: Decimal = ZERO

    roi: Decimal = ZERO
    win_rate: Decimal = ZERO
    success_rate: Decimal = ZERO

    first_bet_at: Optional[datetime] = None
    last_settled_at: Optional[datetime] = None

    # Optimistic concurrency token, owned by the store
    version: int = 0


@dataclass(frozen=True, kw_only=True)
class OverallProjection(TicketPerformance):
    """All-time performance for a user, including gamification records"""

    key: OverallKey

    total_return: Decimal = ZERO
    total_odds: Decimal = ZERO
    avg_odd: Optional[Decimal] = None
    avg_stake: Optional[Decimal] = None

    current_streak: int = 0  # > 0 win run, < 0 loss run
    best_win_streak: int = 0
    worst_loss_streak: int = 0
    biggest_win: Optional[Decimal] = None
    biggest_loss: Optional[Decimal] = None
    best_roi_ticket: Optional[Decimal] = None


@dataclass(frozen=True, kw_only=True)
class MonthProjection(TicketPerformance):
    key: MonthKey


@dataclass(frozen=True, kw_only=True)
class ProviderProjection(TicketPerformance):
    key: ProviderKey

    total_odds: Decimal = ZERO
    avg_odd: Optional[Decimal] = None
    avg_stake: Optional[Decimal] = None


@dataclass(frozen=True, kw_only=True)
class TournamentProjection(TicketPerformance):
    key: TournamentKey


@dataclass(frozen=True, kw_only=True)
class MarketProjection:
    """Per-market performance; counts are per selection, stake and profit per ticket"""

    key: MarketKey

    total_selections: int = 0
    wins: int = 0
    losses: int = 0
    voids: int = 0
    unique_tickets: int = 0

    # Per ticket, by financial status
    tickets_full_won: int = 0
    tickets_partial_won: int = 0
    tickets_break_even: int = 0
    tickets_partial_lost: int = 0
    tickets_total_lost: int = 0

    total_stake: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_odds: Decimal = ZERO

    roi: Decimal = ZERO
    win_rate: Decimal = ZERO
    success_rate: Decimal = ZERO
    avg_odd: Optional[Decimal] = None

    first_bet_at: Optional[datetime] = None
    last_settled_at: Optional[datetime] = None

    version: int = 0


@dataclass(frozen=True)
class DeadLetter:
    """Settlement parked after exhausting its aggregation attempts"""

    id: uuid.UUID
    event: SettlementEvent
    attempts: int
    completed: FrozenSet[str] = frozenset()
    error: Optional[str] = None
