"""Dashboard analytics.

Split into focused modules:
- base: Period resolution (windows, previous window) and percent change
- queries: Aggregate queries over orders, payments, drivers and agents
- dashboard_service: KPI cards, revenue chart, order analytics, feeds
- rankings_service: Restaurant, product, driver and shipping agent leaderboards
- operations_service: Support, shipping, catalog, promotion and rating counters
"""

from app.dashboard.services.analytics.base import (
    PeriodToken,
    TimeWindow,
    parse_period,
    percent_change,
    previous_window,
    resolve_window,
)
from app.dashboard.services.analytics.dashboard_service import DashboardService
from app.dashboard.services.analytics.operations_service import OperationsStatsService
from app.dashboard.services.analytics.queries import DashboardQueries, EntityKind
from app.dashboard.services.analytics.rankings_service import RankingsService

__all__ = [
    # Period utilities
    "PeriodToken",
    "TimeWindow",
    "parse_period",
    "resolve_window",
    "previous_window",
    "percent_change",
    # Queries
    "DashboardQueries",
    "EntityKind",
    # Services
    "DashboardService",
    "RankingsService",
    "OperationsStatsService",
]
