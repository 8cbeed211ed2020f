"""Leaderboard statistics service."""

from datetime import datetime

from sqlalchemy.orm import Session

from app.dashboard.schemas.dashboard import (
    DriverPerformance,
    ProductRanking,
    RestaurantRanking,
    ShippingAgentPerformance,
)
from app.dashboard.services.analytics.base import PeriodToken, resolve_window
from app.dashboard.services.analytics.queries import DashboardQueries, EntityKind


class RankingsService:
    """Best performers for a period, truncated to ``limit``."""

    @staticmethod
    def best_restaurants(
        db: Session, period: str | PeriodToken | None, limit: int, now: datetime
    ) -> list[RestaurantRanking]:
        """Restaurants by revenue from non-cancelled orders."""
        window = resolve_window(period, now)
        return DashboardQueries(db).rank_entities(window, EntityKind.RESTAURANT, limit)

    @staticmethod
    def best_products(
        db: Session, period: str | PeriodToken | None, limit: int, now: datetime
    ) -> list[ProductRanking]:
        """Products by quantity sold in non-cancelled orders."""
        window = resolve_window(period, now)
        return DashboardQueries(db).rank_entities(window, EntityKind.PRODUCT, limit)

    @staticmethod
    def driver_performance(
        db: Session, period: str | PeriodToken | None, limit: int, now: datetime
    ) -> list[DriverPerformance]:
        """Drivers by number of non-cancelled orders delivered or in flight."""
        window = resolve_window(period, now)
        return DashboardQueries(db).rank_entities(window, EntityKind.DRIVER, limit)

    @staticmethod
    def shipping_agents_performance(
        db: Session, period: str | PeriodToken | None, limit: int, now: datetime
    ) -> list[ShippingAgentPerformance]:
        """Shipping agents by number of shipping orders assigned."""
        window = resolve_window(period, now)
        return DashboardQueries(db).rank_entities(window, EntityKind.SHIPPING_AGENT, limit)
