"""Pydantic schemas for validating and serializing settlement facts"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator
from bet_analytics.domain.exceptions import InvalidSettlementEventError
from bet_analytics.domain.models import (
    FinancialStatus,
    SelectionData,
    SelectionStatus,
    SettlementEvent,
    TicketStatus,
)
from bet_analytics.utils.date_utils import ensure_utc


class SelectionPayload(BaseModel):
    """Single selection of a settled ticket"""

    market_type: str = Field(..., min_length=1, max_length=100)
    selection_status: SelectionStatus
    tournament_id: Optional[int] = None
    event_date: Optional[date] = None


class SettlementPayload(BaseModel):
    """Wire/storage form of a SettlementEvent"""

    ticket_id: int
    user_id: int
    provider_id: int
    stake: Decimal = Field(..., ge=0)
    total_odd: Decimal = Field(..., ge=0)
    actual_payout: Decimal = Field(..., ge=0)
    profit_loss: Decimal
    roi: Decimal
    ticket_status: TicketStatus
    financial_status: FinancialStatus
    settled_at: datetime
    selections: List[SelectionPayload] = []

    @field_validator("ticket_status")
    @classmethod
    def ticket_must_be_settled(cls, value: TicketStatus) -> TicketStatus:
        if value == TicketStatus.OPEN:
            raise ValueError("open tickets are not settled")
        return value

    @field_validator("financial_status")
    @classmethod
    def status_must_be_settled(cls, value: FinancialStatus) -> FinancialStatus:
        if value == FinancialStatus.PENDING:
            raise ValueError("pending tickets are not settled")
        return value

    @classmethod
    def from_event(cls, event: SettlementEvent) -> "SettlementPayload":
        return cls(
            ticket_id=event.ticket_id,
            user_id=event.user_id,
            provider_id=event.provider_id,
            stake=event.stake,
            total_odd=event.total_odd,
            actual_payout=event.actual_payout,
            profit_loss=event.profit_loss,
            roi=event.roi,
            ticket_status=event.ticket_status,
            financial_status=event.financial_status,
            settled_at=event.settled_at,
            selections=[
                SelectionPayload(
                    market_type=s.market_type,
                    selection_status=s.selection_status,
                    tournament_id=s.tournament_id,
                    event_date=s.event_date,
                )
                for s in event.selections
            ],
        )

    def to_event(self) -> SettlementEvent:
        return SettlementEvent(
            ticket_id=self.ticket_id,
            user_id=self.user_id,
            provider_id=self.provider_id,
            stake=self.stake,
            total_odd=self.total_odd,
            actual_payout=self.actual_payout,
            profit_loss=self.profit_loss,
            roi=self.roi,
            ticket_status=self.ticket_status,
            financial_status=self.financial_status,
            settled_at=ensure_utc(self.settled_at),
            selections=tuple(
                SelectionData(
                    market_type=s.market_type,
                    selection_status=s.selection_status,
                    tournament_id=s.tournament_id,
                    event_date=s.event_date,
                )
                for s in self.selections
            ),
        )


def parse_settlement(data: dict) -> SettlementEvent:
    """
    Validate a raw settlement fact and convert it to the domain event.

    Raises:
        InvalidSettlementEventError: When the payload is malformed or unsettled
    """
    try:
        return SettlementPayload.model_validate(data).to_event()
    except ValidationError as e:
        raise InvalidSettlementEventError(f"Invalid settlement payload: {e}") from e
