"""Read-side queries over the stored projections"""

from dataclasses import asdict, fields
from typing import Any, Dict, List, Optional
from bet_analytics.domain.models import OverallKey, TicketPerformance
from bet_analytics.domain.stores import ProjectionStores
from bet_analytics.reporting.schemas import (
    MarketSummary,
    MonthSummary,
    OverallSummary,
    PerformanceReport,
    ProviderSummary,
    StreakSummary,
    TournamentSummary,
)

TICKET_FIELDS = [f.name for f in fields(TicketPerformance) if f.name != "version"]
STREAK_FIELDS = list(StreakSummary.model_fields)


def _ticket_fields(projection) -> Dict[str, Any]:
    return {name: getattr(projection, name) for name in TICKET_FIELDS}


class AnalyticsSummaryService:
    """
    Serves the stored projection rows as summaries.

    Rates are stored alongside the counters, so nothing is computed here
    beyond ordering the rows.
    """

    def __init__(self, stores: ProjectionStores):
        self.stores = stores

    def overall(self, user_id: int) -> Optional[OverallSummary]:
        row = self.stores.overall.find_by_key(OverallKey(user_id=user_id))
        if row is None:
            return None
        return OverallSummary(
            user_id=user_id,
            total_return=row.total_return,
            avg_odd=row.avg_odd,
            avg_stake=row.avg_stake,
            streaks=StreakSummary(**{name: getattr(row, name) for name in STREAK_FIELDS}),
            **_ticket_fields(row),
        )

    def by_month(self, user_id: int) -> List[MonthSummary]:
        """Newest month first"""
        rows = sorted(
            self.stores.month.find_by_user(user_id),
            key=lambda r: (r.key.year, r.key.month),
            reverse=True,
        )
        return [MonthSummary(year=r.key.year, month=r.key.month, **_ticket_fields(r)) for r in rows]

    def by_provider(self, user_id: int) -> List[ProviderSummary]:
        """Busiest provider first"""
        rows = sorted(
            self.stores.provider.find_by_user(user_id),
            key=lambda r: (-r.total_tickets, r.key.provider_id),
        )
        return [
            ProviderSummary(provider_id=r.key.provider_id, avg_odd=r.avg_odd, avg_stake=r.avg_stake, **_ticket_fields(r))
            for r in rows
        ]

    def by_market(self, user_id: int) -> List[MarketSummary]:
        """Market touched by most tickets first"""
        rows = sorted(
            self.stores.market.find_by_user(user_id),
            key=lambda r: (-r.unique_tickets, r.key.market_type),
        )
        summaries = []
        for r in rows:
            values = asdict(r)
            values.pop("key")
            values.pop("version")
            summaries.append(MarketSummary(market_type=r.key.market_type, **values))
        return summaries

    def by_tournament(self, user_id: int) -> List[TournamentSummary]:
        rows = sorted(
            self.stores.tournament.find_by_user(user_id),
            key=lambda r: (-r.total_tickets, r.key.tournament_id),
        )
        return [TournamentSummary(tournament_id=r.key.tournament_id, **_ticket_fields(r)) for r in rows]

    def report(self, user_id: int) -> PerformanceReport:
        return PerformanceReport(
            user_id=user_id,
            overall=self.overall(user_id),
            months=self.by_month(user_id),
            providers=self.by_provider(user_id),
            markets=self.by_market(user_id),
            tournaments=self.by_tournament(user_id),
        )
