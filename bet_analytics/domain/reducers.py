"""
Projection reducers - pure (old state, settlement) -> new state functions.

One reducer per projection kind. A missing old state means the row does not
exist yet and is created from zero. Counters only grow; every derived field
is recomputed from the post-increment counters on each call.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple
from bet_analytics.domain.models import (
    FinancialStatus,
    MarketKey,
    MarketProjection,
    MonthKey,
    MonthProjection,
    OutcomeBucket,
    OverallKey,
    OverallProjection,
    ProviderKey,
    ProviderProjection,
    SettlementEvent,
    TicketPerformance,
    TicketStatus,
    TournamentKey,
    TournamentProjection,
)
from bet_analytics.domain.rules import is_loss, is_win, outcome_bucket, selection_bucket
from bet_analytics.utils.date_utils import earliest, latest, year_month
from bet_analytics.utils.decimal_utils import ODD_PLACES, average, rate_percent, roi_percent

BUCKET_COUNTERS = {
    OutcomeBucket.WON: "tickets_won",
    OutcomeBucket.LOST: "tickets_lost",
    OutcomeBucket.VOID: "tickets_void",
}

STATUS_COUNTERS = {
    FinancialStatus.FULL_WIN: "tickets_full_won",
    FinancialStatus.PARTIAL_WIN: "tickets_partial_won",
    FinancialStatus.BREAK_EVEN: "tickets_break_even",
    FinancialStatus.PARTIAL_LOSS: "tickets_partial_lost",
    FinancialStatus.TOTAL_LOSS: "tickets_total_lost",
}


# Keys touched by a settlement


def overall_key(event: SettlementEvent) -> OverallKey:
    return OverallKey(user_id=event.user_id)


def month_key(event: SettlementEvent, tz_name: str = "UTC") -> MonthKey:
    year, month = year_month(event.settled_at, tz_name)
    return MonthKey(user_id=event.user_id, year=year, month=month)


def provider_key(event: SettlementEvent) -> ProviderKey:
    return ProviderKey(user_id=event.user_id, provider_id=event.provider_id)


def market_keys(event: SettlementEvent) -> List[MarketKey]:
    """Distinct markets in selection order"""
    seen = dict.fromkeys(s.market_type for s in event.selections)
    return [MarketKey(user_id=event.user_id, market_type=m) for m in seen]


def tournament_keys(event: SettlementEvent) -> List[TournamentKey]:
    """Distinct tournaments in selection order, selections without one are skipped"""
    seen = dict.fromkeys(s.tournament_id for s in event.selections if s.tournament_id is not None)
    return [TournamentKey(user_id=event.user_id, tournament_id=t) for t in seen]


# Shared ticket counters


def ticket_changes(state: TicketPerformance, event: SettlementEvent) -> Dict[str, Any]:
    """Field updates for one more ticket on any ticket-level projection"""
    changes: Dict[str, Any] = {"total_tickets": state.total_tickets + 1}

    bucket_counter = BUCKET_COUNTERS.get(outcome_bucket(event.financial_status))
    if bucket_counter:
        changes[bucket_counter] = getattr(state, bucket_counter) + 1

    status_counter = STATUS_COUNTERS.get(event.financial_status)
    if status_counter:
        changes[status_counter] = getattr(state, status_counter) + 1

    if event.ticket_status == TicketStatus.CASHOUT:
        changes["tickets_cashed_out"] = state.tickets_cashed_out + 1

    total = changes["total_tickets"]
    won = changes.get("tickets_won", state.tickets_won)
    full_won = changes.get("tickets_full_won", state.tickets_full_won)
    total_stake = state.total_stake + event.stake
    total_profit = state.total_profit + event.profit_loss

    changes.update(
        total_stake=total_stake,
        total_profit=total_profit,
        roi=roi_percent(total_profit, total_stake),
        win_rate=rate_percent(won, total),
        success_rate=rate_percent(full_won, total),
        first_bet_at=earliest(state.first_bet_at, event.settled_at),
        last_settled_at=latest(state.last_settled_at, event.settled_at),
    )
    return changes


def average_changes(state, event: SettlementEvent, total_tickets: int, total_stake) -> Dict[str, Any]:
    """Odd/stake averages, derived from running sums"""
    total_odds = state.total_odds + event.total_odd
    return {
        "total_odds": total_odds,
        "avg_odd": average(total_odds, total_tickets, ODD_PLACES),
        "avg_stake": average(total_stake, total_tickets),
    }


# Gamification


def next_streak(current: int, best: int, worst: int, status: FinancialStatus) -> Tuple[int, int, int]:
    """
    Advance the signed streak and its records.

    Returns (current_streak, best_win_streak, worst_loss_streak).
    """
    if is_win(status):
        current = current + 1 if current >= 0 else 1
        best = max(best, current)
    elif is_loss(status):
        current = current - 1 if current <= 0 else -1
        worst = min(worst, current)
    else:
        current = 0
    return current, best, worst


def record_changes(state: OverallProjection, event: SettlementEvent) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    profit = event.profit_loss

    if profit > 0 and (state.biggest_win is None or profit > state.biggest_win):
        changes["biggest_win"] = profit
    elif profit < 0 and (state.biggest_loss is None or profit < state.biggest_loss):
        changes["biggest_loss"] = profit

    if state.best_roi_ticket is None or event.roi > state.best_roi_ticket:
        changes["best_roi_ticket"] = event.roi

    return changes


# Reducers


def reduce_overall(state: Optional[OverallProjection], key: OverallKey, event: SettlementEvent) -> OverallProjection:
    base = state or OverallProjection(key=key)
    changes = ticket_changes(base, event)
    changes["total_return"] = base.total_return + event.actual_payout
    changes.update(average_changes(base, event, changes["total_tickets"], changes["total_stake"]))

    current, best, worst = next_streak(
        base.current_streak, base.best_win_streak, base.worst_loss_streak, event.financial_status
    )
    changes.update(current_streak=current, best_win_streak=best, worst_loss_streak=worst)
    changes.update(record_changes(base, event))

    return replace(base, **changes)


def reduce_month(state: Optional[MonthProjection], key: MonthKey, event: SettlementEvent) -> MonthProjection:
    base = state or MonthProjection(key=key)
    return replace(base, **ticket_changes(base, event))


def reduce_provider(
    state: Optional[ProviderProjection], key: ProviderKey, event: SettlementEvent
) -> ProviderProjection:
    base = state or ProviderProjection(key=key)
    changes = ticket_changes(base, event)
    changes.update(average_changes(base, event, changes["total_tickets"], changes["total_stake"]))
    return replace(base, **changes)


def reduce_tournament(
    state: Optional[TournamentProjection], key: TournamentKey, event: SettlementEvent
) -> TournamentProjection:
    # One ticket counts once per tournament, using the ticket's own status
    base = state or TournamentProjection(key=key)
    return replace(base, **ticket_changes(base, event))


def reduce_market(state: Optional[MarketProjection], key: MarketKey, event: SettlementEvent) -> MarketProjection:
    """
    Fold one ticket into a market row.

    Win/loss/void counts come from each selection in this market. Stake and
    profit are the full ticket amounts, so summing them across markets
    overcounts the capital at risk on multi-market tickets.
    """
    base = state or MarketProjection(key=key)
    buckets = [selection_bucket(s.selection_status) for s in event.selections if s.market_type == key.market_type]

    total_selections = base.total_selections + len(buckets)
    wins = base.wins + buckets.count(OutcomeBucket.WON)
    unique_tickets = base.unique_tickets + 1
    total_stake = base.total_stake + event.stake
    total_profit = base.total_profit + event.profit_loss
    total_odds = base.total_odds + event.total_odd

    changes: Dict[str, Any] = {}
    status_counter = STATUS_COUNTERS.get(event.financial_status)
    if status_counter:
        changes[status_counter] = getattr(base, status_counter) + 1
    full_won = changes.get("tickets_full_won", base.tickets_full_won)

    return replace(
        base,
        total_selections=total_selections,
        wins=wins,
        losses=base.losses + buckets.count(OutcomeBucket.LOST),
        voids=base.voids + buckets.count(OutcomeBucket.VOID),
        unique_tickets=unique_tickets,
        total_stake=total_stake,
        total_profit=total_profit,
        total_odds=total_odds,
        roi=roi_percent(total_profit, total_stake),
        win_rate=rate_percent(wins, total_selections),
        success_rate=rate_percent(full_won, unique_tickets),
        avg_odd=average(total_odds, unique_tickets, ODD_PLACES),
        first_bet_at=earliest(base.first_bet_at, event.settled_at),
        last_settled_at=latest(base.last_settled_at, event.settled_at),
        **changes,
    )
