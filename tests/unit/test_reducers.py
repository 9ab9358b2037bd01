"""Unit tests for projection reducers"""

import itertools
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from bet_analytics.domain.models import (
    FinancialStatus,
    MarketKey,
    MarketProjection,
    OverallKey,
    SelectionData,
    SelectionStatus,
    TicketStatus,
)
from bet_analytics.domain.reducers import (
    market_keys,
    month_key,
    next_streak,
    provider_key,
    reduce_market,
    reduce_month,
    reduce_overall,
    reduce_provider,
    tournament_keys,
)


def fold(reducer, key, events):
    state = None
    for event in events:
        state = reducer(state, key, event)
    return state


class TestOverall:
    def test_first_ticket_creates_the_row(self, win_event):
        event = win_event()
        state = reduce_overall(None, OverallKey(user_id=1), event)

        assert state.total_tickets == 1
        assert state.tickets_won == 1
        assert state.tickets_full_won == 1
        assert state.total_stake == Decimal("50.00")
        assert state.total_profit == Decimal("75.00")
        assert state.total_return == Decimal("125.00")
        assert state.roi == Decimal("150.0000")
        assert state.win_rate == Decimal("100.00")
        assert state.first_bet_at == state.last_settled_at == event.settled_at
        assert state.version == 0

    def test_mixed_outcomes(self, make_event):
        events = [
            make_event(stake="50.00", payout="125.00", potential="125.00", total_odd="2.50"),
            make_event(stake="100.00", payout="0.00", total_odd="1.80", ticket_status=TicketStatus.LOST),
            make_event(stake="20.00", payout="20.00", total_odd="3.00", ticket_status=TicketStatus.VOID),
        ]
        state = fold(reduce_overall, OverallKey(user_id=1), events)

        assert state.total_tickets == 3
        assert (state.tickets_won, state.tickets_lost, state.tickets_void) == (1, 1, 1)
        assert (state.tickets_full_won, state.tickets_total_lost, state.tickets_break_even) == (1, 1, 1)
        assert state.total_stake == Decimal("170.00")
        assert state.total_profit == Decimal("-25.00")
        assert state.total_return == Decimal("145.00")
        assert str(state.roi) == "-14.7059"
        assert str(state.win_rate) == "33.33"
        assert str(state.success_rate) == "33.33"
        assert str(state.avg_odd) == "2.4333"
        assert str(state.avg_stake) == "56.67"
        assert (state.current_streak, state.best_win_streak, state.worst_loss_streak) == (0, 1, -1)
        assert state.biggest_win == Decimal("75.00")
        assert state.biggest_loss == Decimal("-100.00")
        assert state.best_roi_ticket == Decimal("150.0000")

    def test_counter_sum_never_exceeds_total(self, make_event):
        events = [
            make_event(payout="150.00"),
            make_event(payout="100.00", ticket_status=TicketStatus.VOID),
            make_event(payout="40.00", ticket_status=TicketStatus.CASHOUT),
        ]
        state = fold(reduce_overall, OverallKey(user_id=1), events)

        assert state.tickets_won + state.tickets_lost + state.tickets_void <= state.total_tickets
        assert state.tickets_cashed_out == 1
        assert state.tickets_partial_lost == 1

    def test_zero_stake_keeps_roi_at_zero(self, make_event):
        state = reduce_overall(None, OverallKey(user_id=1), make_event(stake="0", payout="0"))
        assert state.roi == 0

    def test_dates_are_order_independent(self, make_event):
        early = datetime(2026, 1, 1, tzinfo=timezone.utc)
        late = early + timedelta(days=30)
        events = [make_event(settled_at=late), make_event(settled_at=early)]

        state = fold(reduce_overall, OverallKey(user_id=1), events)

        assert state.first_bet_at == early
        assert state.last_settled_at == late


class TestStreak:
    def test_wins_then_loss(self, win_event, loss_event):
        key = OverallKey(user_id=1)
        streaks = []
        state = None
        for event in [win_event(), win_event(), win_event(), loss_event()]:
            state = reduce_overall(state, key, event)
            streaks.append(state.current_streak)

        assert streaks == [1, 2, 3, -1]
        assert state.best_win_streak == 3
        assert state.worst_loss_streak == -1

    def test_losses_extend_downwards(self):
        current, best, worst = 0, 0, 0
        for _ in range(4):
            current, best, worst = next_streak(current, best, worst, FinancialStatus.PARTIAL_LOSS)
        assert (current, best, worst) == (-4, 0, -4)

    def test_break_even_resets(self):
        assert next_streak(5, 5, -2, FinancialStatus.BREAK_EVEN) == (0, 5, -2)

    @pytest.mark.parametrize("status", list(FinancialStatus))
    def test_records_bound_the_current_streak(self, status):
        current, best, worst = next_streak(2, 3, -4, status)
        assert worst <= current <= best

    @pytest.mark.parametrize("sequence", sorted(set(itertools.permutations("WLLWWWL"))))
    def test_mixed_sequences_keep_streak_invariants(self, sequence, win_event, loss_event):
        key = OverallKey(user_id=1)
        state = None
        for outcome in sequence:
            state = reduce_overall(state, key, win_event() if outcome == "W" else loss_event())

            assert abs(state.current_streak) <= state.total_tickets
            if outcome == "W":
                assert state.current_streak > 0
            else:
                assert state.current_streak < 0
            assert state.best_win_streak >= state.current_streak >= state.worst_loss_streak

        runs = [(outcome, len(list(group))) for outcome, group in itertools.groupby(sequence)]
        assert state.best_win_streak == max(n for outcome, n in runs if outcome == "W")
        assert state.worst_loss_streak == -max(n for outcome, n in runs if outcome == "L")


class TestMonthAndProvider:
    def test_month_bucketing_uses_configured_zone(self, make_event):
        event = make_event(settled_at=datetime(2026, 2, 1, 1, 0, tzinfo=timezone.utc))

        assert (month_key(event).year, month_key(event).month) == (2026, 2)
        local = month_key(event, "America/Sao_Paulo")
        assert (local.year, local.month) == (2026, 1)
        assert local.label == "month:2026-01"

    def test_month_counts_tickets(self, make_event):
        event = make_event()
        state = reduce_month(None, month_key(event), event)
        assert state.total_tickets == 1
        assert state.key.month == 3

    def test_provider_averages(self, make_event):
        events = [make_event(stake="10.00", total_odd="1.50"), make_event(stake="30.00", total_odd="2.50")]
        state = None
        for event in events:
            state = reduce_provider(state, provider_key(event), event)

        assert state.total_odds == Decimal("4.00")
        assert str(state.avg_odd) == "2.0000"
        assert str(state.avg_stake) == "20.00"


class TestMarketAndTournament:
    @pytest.fixture
    def multi_market_event(self, make_event):
        selections = [
            SelectionData("Handicap", SelectionStatus.WON, tournament_id=7),
            SelectionData("Handicap", SelectionStatus.HALF_LOST, tournament_id=7),
            SelectionData("Total de Gols", SelectionStatus.WON, tournament_id=None),
        ]
        return make_event(stake="30.00", payout="45.00", potential="90.00", selections=selections)

    def test_distinct_markets_in_order(self, multi_market_event):
        assert [k.market_type for k in market_keys(multi_market_event)] == ["Handicap", "Total de Gols"]

    def test_tournaments_skip_missing_and_duplicates(self, multi_market_event):
        assert [k.tournament_id for k in tournament_keys(multi_market_event)] == [7]

    def test_each_market_gets_the_full_stake(self, multi_market_event):
        handicap = reduce_market(None, MarketKey(user_id=1, market_type="Handicap"), multi_market_event)
        goals = reduce_market(None, MarketKey(user_id=1, market_type="Total de Gols"), multi_market_event)

        assert (handicap.total_selections, handicap.wins, handicap.losses, handicap.voids) == (2, 1, 1, 0)
        assert handicap.unique_tickets == 1
        assert handicap.total_stake == Decimal("30.00")
        assert handicap.total_profit == Decimal("15.00")
        assert handicap.roi == Decimal("50.0000")
        assert str(handicap.win_rate) == "50.00"

        assert (goals.total_selections, goals.wins) == (1, 1)
        assert goals.total_stake == Decimal("30.00")
        assert goals.total_profit == Decimal("15.00")
        assert str(goals.win_rate) == "100.00"

    def test_every_selection_lands_in_one_bucket(self, make_event):
        selections = [SelectionData("1X2", status) for status in SelectionStatus]
        state = reduce_market(None, MarketKey(user_id=1, market_type="1X2"), make_event(selections=selections))

        assert state.wins + state.losses + state.voids == state.total_selections == len(SelectionStatus)

    def test_unique_tickets_counts_events(self, make_event):
        key = MarketKey(user_id=1, market_type="Match Result")
        state = fold(reduce_market, key, [make_event() for _ in range(4)])

        assert state.unique_tickets == 4
        assert state.total_selections == 4

    @pytest.fixture
    def mixed_market_events(self, make_event):
        """Four tickets touching market M, with 8 selections in it between them"""
        return [
            make_event(
                stake="10.00",
                payout="0.00",
                total_odd="1.50",
                ticket_status=TicketStatus.LOST,
                settled_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
                selections=[
                    SelectionData("M", SelectionStatus.WON),
                    SelectionData("M", SelectionStatus.LOST),
                    SelectionData("Other", SelectionStatus.WON),
                ],
            ),
            make_event(
                stake="20.00",
                payout="30.00",
                potential="60.00",
                total_odd="2.00",
                settled_at=datetime(2026, 1, 6, tzinfo=timezone.utc),
                selections=[SelectionData("M", SelectionStatus.HALF_WON)],
            ),
            make_event(
                stake="30.00",
                payout="30.00",
                total_odd="3.00",
                ticket_status=TicketStatus.VOID,
                settled_at=datetime(2026, 1, 7, tzinfo=timezone.utc),
                selections=[
                    SelectionData("M", SelectionStatus.VOID),
                    SelectionData("M", SelectionStatus.CASHOUT),
                    SelectionData("M", SelectionStatus.HALF_LOST),
                ],
            ),
            make_event(
                stake="40.00",
                payout="100.00",
                potential="100.00",
                total_odd="2.50",
                settled_at=datetime(2026, 1, 8, tzinfo=timezone.utc),
                selections=[SelectionData("M", SelectionStatus.PENDING), SelectionData("M", SelectionStatus.WON)],
            ),
        ]

    def test_market_totals_over_mixed_tickets(self, mixed_market_events):
        state = fold(reduce_market, MarketKey(user_id=1, market_type="M"), mixed_market_events)

        assert state.unique_tickets == 4
        assert (state.total_selections, state.wins, state.losses, state.voids) == (8, 3, 2, 3)
        assert state.wins + state.losses + state.voids == state.total_selections
        assert state.total_stake == Decimal("100.00")
        assert state.total_profit == Decimal("60.00")
        assert state.roi == Decimal("60.0000")
        assert str(state.win_rate) == "37.50"

    def test_market_fold_is_order_independent(self, mixed_market_events):
        key = MarketKey(user_id=1, market_type="M")

        forward = fold(reduce_market, key, mixed_market_events)
        backward = fold(reduce_market, key, list(reversed(mixed_market_events)))

        assert forward == backward
        assert forward.first_bet_at == datetime(2026, 1, 5, tzinfo=timezone.utc)
        assert forward.last_settled_at == datetime(2026, 1, 8, tzinfo=timezone.utc)

    def test_market_ticket_buckets_and_averages(self, mixed_market_events):
        state = fold(reduce_market, MarketKey(user_id=1, market_type="M"), mixed_market_events)

        assert state.tickets_full_won == 1
        assert state.tickets_partial_won == 1
        assert state.tickets_break_even == 1
        assert state.tickets_partial_lost == 0
        assert state.tickets_total_lost == 1
        assert str(state.success_rate) == "25.00"
        assert state.total_odds == Decimal("9.00")
        assert str(state.avg_odd) == "2.2500"

    def test_empty_market_has_no_average_odd(self):
        state = MarketProjection(key=MarketKey(user_id=1, market_type="M"))

        assert state.avg_odd is None
        assert state.success_rate == 0
