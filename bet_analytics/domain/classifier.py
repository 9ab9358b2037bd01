"""Financial outcome classifier - maps ticket amounts to a five-level financial status"""

from decimal import Decimal
from typing import Optional
from bet_analytics.domain.models import (
    ZERO,
    ClassificationInput,
    ClassificationResult,
    FinancialStatus,
    TicketStatus,
)
from bet_analytics.utils.decimal_utils import roi_percent

PENDING_RESULT = ClassificationResult(
    financial_status=FinancialStatus.PENDING,
    profit_loss=ZERO,
    roi=ZERO,
)


def determine_financial_status(
    stake: Decimal,
    actual_payout: Decimal,
    potential_payout: Optional[Decimal],
) -> FinancialStatus:
    """
    Walk the status decision tree in a fixed order.

    - payout == 0                          -> TOTAL_LOSS
    - payout < stake                       -> PARTIAL_LOSS
    - payout == stake                      -> BREAK_EVEN
    - potential known and payout >= it     -> FULL_WIN (bonuses may exceed potential)
    - payout > stake                       -> PARTIAL_WIN
    - anything else                        -> PENDING

    For finite decimals the first five branches partition every input, so the
    last one is only reachable through values that compare false both ways.
    """
    if actual_payout == 0:
        return FinancialStatus.TOTAL_LOSS
    if actual_payout < stake:
        return FinancialStatus.PARTIAL_LOSS
    if actual_payout == stake:
        return FinancialStatus.BREAK_EVEN
    if potential_payout is not None and potential_payout.is_finite() and actual_payout >= potential_payout:
        return FinancialStatus.FULL_WIN
    if actual_payout > stake:
        return FinancialStatus.PARTIAL_WIN
    return FinancialStatus.PENDING


def classify(data: ClassificationInput) -> ClassificationResult:
    """
    Classify a ticket's monetary outcome.

    Never raises: open tickets, a missing payout or non-finite amounts all
    come back as PENDING with zero profit and ROI.
    """
    if data.ticket_status == TicketStatus.OPEN or data.actual_payout is None:
        return PENDING_RESULT

    if not (data.stake.is_finite() and data.actual_payout.is_finite()):
        return PENDING_RESULT

    profit_loss = data.actual_payout - data.stake

    return ClassificationResult(
        financial_status=determine_financial_status(data.stake, data.actual_payout, data.potential_payout),
        profit_loss=profit_loss,
        roi=roi_percent(profit_loss, data.stake),
    )


def classify_outcome(
    stake: Decimal,
    actual_payout: Optional[Decimal],
    potential_payout: Optional[Decimal],
    ticket_status: TicketStatus,
) -> ClassificationResult:
    """Convenience wrapper taking the ticket fields directly"""
    return classify(
        ClassificationInput(
            stake=stake,
            actual_payout=actual_payout,
            potential_payout=potential_payout,
            ticket_status=ticket_status,
        )
    )
