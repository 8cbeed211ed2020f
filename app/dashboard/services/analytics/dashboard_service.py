"""Dashboard KPI, chart and feed composition."""

from datetime import datetime

import structlog
from sqlalchemy.orm import Session, joinedload

from app.activity.models.activity_log import ActivityLog
from app.dashboard.schemas.dashboard import (
    ActiveOrder,
    ActivityEntry,
    DashboardKPIs,
    MetricValue,
    NamedValue,
    OrdersAnalytics,
    RevenueDataPoint,
    StatusCount,
)
from app.dashboard.services.analytics.base import (
    PeriodToken,
    parse_period,
    percent_change,
    previous_window,
    resolve_window,
)
from app.dashboard.services.analytics.queries import DashboardQueries
from app.drivers.models.driver import DeliveryDriver
from app.orders.models.order import OPEN_ORDER_STATUSES, FoodOrder

logger = structlog.get_logger(__name__)


class DashboardService:
    """Service for dashboard summary aggregation."""

    @staticmethod
    def build_kpis(db: Session, period: str | PeriodToken | None, now: datetime) -> DashboardKPIs:
        """Get the KPI cards for a period with period-over-period change.

        Revenue, orders and customers are compared against the preceding
        window of the same period. Active drivers is a live gauge and its
        change is always 0.

        Args:
            db: Database session.
            period: Period token; unknown values fall back to month.
            now: The current instant.

        Returns:
            DashboardKPIs with revenue, orders, customers and active drivers.
        """
        token = parse_period(period)
        window = resolve_window(token, now)
        previous = previous_window(token, window)
        queries = DashboardQueries(db)

        current_totals = queries.window_totals(window)
        previous_totals = queries.window_totals(previous)
        active_drivers = queries.count_online_drivers()

        logger.debug(
            "dashboard_kpis_computed",
            period=token.value,
            window_start=window.start_date.isoformat(),
            previous_start=previous.start_date.isoformat(),
        )

        return DashboardKPIs(
            revenue=MetricValue(
                value=round(current_totals.revenue, 2),
                change=percent_change(current_totals.revenue, previous_totals.revenue),
            ),
            orders=MetricValue(
                value=current_totals.orders,
                change=percent_change(current_totals.orders, previous_totals.orders),
            ),
            customers=MetricValue(
                value=current_totals.customers,
                change=percent_change(current_totals.customers, previous_totals.customers),
            ),
            active_drivers=MetricValue(value=active_drivers, change=0),
        )

    @staticmethod
    def build_revenue_series(
        db: Session, period: str | PeriodToken | None, now: datetime
    ) -> list[RevenueDataPoint]:
        """Revenue per day in the period, ascending, without zero-filled gaps."""
        window = resolve_window(period, now)
        return [
            RevenueDataPoint(date=day.isoformat(), revenue=round(revenue, 2))
            for day, revenue in DashboardQueries(db).daily_revenue(window)
        ]

    @staticmethod
    def build_order_analytics(
        db: Session, period: str | PeriodToken | None, now: datetime
    ) -> OrdersAnalytics:
        """Payment method split and order status split for the period."""
        window = resolve_window(period, now)
        queries = DashboardQueries(db)
        return OrdersAnalytics(
            payment_methods=queries.group_payments_by_method(window),
            order_statuses=[
                NamedValue(name=status, value=count)
                for status, count in queries.group_orders_by_status(window)
            ],
        )

    @staticmethod
    def build_order_status_breakdown(
        db: Session, period: str | PeriodToken | None, now: datetime
    ) -> list[StatusCount]:
        window = resolve_window(period, now)
        return [
            StatusCount(status=status, count=count)
            for status, count in DashboardQueries(db).group_orders_by_status(window)
        ]

    @staticmethod
    def build_active_orders_feed(db: Session, limit: int) -> list[ActiveOrder]:
        """Open orders, most recent first."""
        orders = (
            db.query(FoodOrder)
            .options(
                joinedload(FoodOrder.user),
                joinedload(FoodOrder.restaurant),
                joinedload(FoodOrder.driver).joinedload(DeliveryDriver.user),
            )
            .filter(FoodOrder.status.in_(OPEN_ORDER_STATUSES))
            .order_by(FoodOrder.created_at.desc(), FoodOrder.id)
            .limit(limit)
            .all()
        )

        return [
            ActiveOrder(
                id=str(order.id),
                order_number=order.order_number,
                customer_name=order.user.name if order.user else "Unknown",
                restaurant_name=order.restaurant.display_name if order.restaurant else None,
                status=order.status,
                driver_name=order.driver.user.name if order.driver and order.driver.user else None,
                total_price=round(order.total_price, 2),
                created_at=order.created_at,
            )
            for order in orders
        ]

    @staticmethod
    def build_recent_activity_feed(db: Session, limit: int) -> list[ActivityEntry]:
        """Latest activity log entries regardless of period."""
        activities = (
            db.query(ActivityLog)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id)
            .limit(limit)
            .all()
        )

        return [
            ActivityEntry(
                id=str(activity.id),
                reference=activity.entity_id,
                status=activity.action,
                entity_type=activity.entity_type,
                user_name=activity.user.name if activity.user else "System",
                created_at=activity.created_at,
            )
            for activity in activities
        ]
