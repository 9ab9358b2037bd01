"""Settlement fact construction - runs the classifier and packages the result for aggregation"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional
from bet_analytics.domain.classifier import classify_outcome
from bet_analytics.domain.models import FinancialStatus, SelectionData, SettlementEvent, TicketStatus
from bet_analytics.domain.exceptions import InvalidSettlementEventError
from bet_analytics.utils.date_utils import ensure_utc


def build_settlement_event(
    ticket_id: int,
    user_id: int,
    provider_id: int,
    stake: Decimal,
    total_odd: Decimal,
    actual_payout: Optional[Decimal],
    potential_payout: Optional[Decimal],
    ticket_status: TicketStatus,
    settled_at: datetime,
    selections: Iterable[SelectionData] = (),
) -> Optional[SettlementEvent]:
    """
    Classify a ticket and build the fact handed to the aggregation engine.

    Returns None while the ticket is still pending (open, or no payout yet);
    nothing is aggregated for it.

    Raises:
        InvalidSettlementEventError: On a negative stake or payout
    """
    if stake < 0:
        raise InvalidSettlementEventError(f"Ticket {ticket_id} has a negative stake: {stake}")
    if actual_payout is not None and actual_payout < 0:
        raise InvalidSettlementEventError(f"Ticket {ticket_id} has a negative payout: {actual_payout}")

    result = classify_outcome(stake, actual_payout, potential_payout, ticket_status)
    if result.financial_status == FinancialStatus.PENDING:
        return None

    return SettlementEvent(
        ticket_id=ticket_id,
        user_id=user_id,
        provider_id=provider_id,
        stake=stake,
        total_odd=total_odd,
        actual_payout=actual_payout,
        profit_loss=result.profit_loss,
        roi=result.roi,
        ticket_status=ticket_status,
        financial_status=result.financial_status,
        settled_at=ensure_utc(settled_at),
        selections=tuple(selections),
    )
