"""
Business rules over a classified FinancialStatus.

Grouping used throughout the aggregation:
- FULL_WIN and PARTIAL_WIN are wins (system bets and cashouts can both
  produce a partial win)
- TOTAL_LOSS and PARTIAL_LOSS are losses
- BREAK_EVEN is neither; it counts as void in the three-way reduction
- PENDING is not settled and never counts
"""

from bet_analytics.domain.models import FinancialStatus, OutcomeBucket, SelectionStatus

WIN_STATUSES = frozenset({FinancialStatus.FULL_WIN, FinancialStatus.PARTIAL_WIN})
LOSS_STATUSES = frozenset({FinancialStatus.TOTAL_LOSS, FinancialStatus.PARTIAL_LOSS})

DISPLAY_NAMES = {
    FinancialStatus.PENDING: "Pending",
    FinancialStatus.FULL_WIN: "Full win",
    FinancialStatus.PARTIAL_WIN: "Partial win",
    FinancialStatus.BREAK_EVEN: "Break even",
    FinancialStatus.PARTIAL_LOSS: "Partial loss",
    FinancialStatus.TOTAL_LOSS: "Total loss",
}


def is_win(status: FinancialStatus) -> bool:
    return status in WIN_STATUSES


def is_loss(status: FinancialStatus) -> bool:
    return status in LOSS_STATUSES


def is_full_win(status: FinancialStatus) -> bool:
    return status == FinancialStatus.FULL_WIN


def is_partial_win(status: FinancialStatus) -> bool:
    return status == FinancialStatus.PARTIAL_WIN


def is_total_loss(status: FinancialStatus) -> bool:
    return status == FinancialStatus.TOTAL_LOSS


def is_partial_loss(status: FinancialStatus) -> bool:
    return status == FinancialStatus.PARTIAL_LOSS


def is_break_even(status: FinancialStatus) -> bool:
    return status == FinancialStatus.BREAK_EVEN


def is_pending(status: FinancialStatus) -> bool:
    return status == FinancialStatus.PENDING


def is_settled(status: FinancialStatus) -> bool:
    return status != FinancialStatus.PENDING


def is_partial_result(status: FinancialStatus) -> bool:
    return status in (FinancialStatus.PARTIAL_WIN, FinancialStatus.PARTIAL_LOSS)


def is_complete_result(status: FinancialStatus) -> bool:
    return status in (FinancialStatus.FULL_WIN, FinancialStatus.TOTAL_LOSS)


def generates_profit_or_loss(status: FinancialStatus) -> bool:
    """True when the ticket moved money either way (not break even, not pending)"""
    return is_win(status) or is_loss(status)


def counts_as_win_for_rate(status: FinancialStatus, include_partial: bool = True) -> bool:
    return is_win(status) if include_partial else is_full_win(status)


def counts_as_loss_for_rate(status: FinancialStatus, include_partial: bool = True) -> bool:
    return is_loss(status) if include_partial else is_total_loss(status)


def counts_for_streak(status: FinancialStatus) -> bool:
    """BREAK_EVEN and PENDING interrupt a streak instead of extending it"""
    return status not in (FinancialStatus.BREAK_EVEN, FinancialStatus.PENDING)


def outcome_bucket(status: FinancialStatus) -> OutcomeBucket:
    """Reduce a financial status to the won/lost/void ticket counters"""
    if is_win(status):
        return OutcomeBucket.WON
    if is_loss(status):
        return OutcomeBucket.LOST
    if is_break_even(status):
        return OutcomeBucket.VOID
    return OutcomeBucket.NONE


def selection_bucket(status: SelectionStatus) -> OutcomeBucket:
    """
    Reduce a selection outcome to the market win/loss/void counters.

    Half results lean to their side. Anything without a decided side
    (void, cashout, still pending on a settled ticket) is void, so every
    selection lands in exactly one bucket.
    """
    if status in (SelectionStatus.WON, SelectionStatus.HALF_WON):
        return OutcomeBucket.WON
    if status in (SelectionStatus.LOST, SelectionStatus.HALF_LOST):
        return OutcomeBucket.LOST
    return OutcomeBucket.VOID


def display_name(status: FinancialStatus) -> str:
    return DISPLAY_NAMES[status]


def context_description(
    status: FinancialStatus,
    is_cashed_out: bool = False,
    is_system_bet: bool = False,
) -> str:
    """Human-readable explanation of how a ticket could have ended in this status"""
    if status == FinancialStatus.FULL_WIN:
        return "Every selection hit and the maximum payout was received"

    if status == FinancialStatus.PARTIAL_WIN:
        if is_cashed_out:
            return "Cashed out with a profit before the final result"
        if is_system_bet:
            return "System bet with some combinations lost (e.g. 4/5 system, one miss)"
        return "Partial payout received (voided selections or system bet)"

    if status == FinancialStatus.BREAK_EVEN:
        if is_cashed_out:
            return "Cashed out for exactly the stake"
        if is_system_bet:
            return "System bet returned exactly the stake"
        return "One or more selections were voided and the stake was returned"

    if status == FinancialStatus.PARTIAL_LOSS:
        if is_cashed_out:
            return "Cashed out at a loss before losing everything"
        if is_system_bet:
            return "System bet within its error margin but returning less than the stake"
        return "Part of the stake was returned"

    if status == FinancialStatus.TOTAL_LOSS:
        return "Every selection or the whole stake was lost"

    return "Waiting for selection results"
