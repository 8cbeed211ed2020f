"""Aggregate queries backing the dashboard.

Every windowed query filters ``created_at`` inclusively on both ends. Empty
results normalize to zero / empty lists. Database errors are not caught here.
"""

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth.models.user import User
from app.dashboard.schemas.dashboard import (
    DriverPerformance,
    NamedValue,
    ProductRanking,
    RestaurantRanking,
    ShippingAgentPerformance,
)
from app.dashboard.services.analytics.base import TimeWindow
from app.drivers.models.driver import DeliveryDriver
from app.orders.models.order import FoodOrder, FoodOrderItem, OrderStatus
from app.orders.models.payment import Payment, PaymentOrderType, PaymentStatus
from app.restaurants.models.restaurant import Product, Restaurant
from app.shipping.models.shipping import ShippingAgent, ShippingOrder

EXCLUDED_FROM_REVENUE: tuple[str, ...] = (OrderStatus.CANCELLED.value,)


class EntityKind(str, enum.Enum):
    RESTAURANT = "restaurant"
    PRODUCT = "product"
    DRIVER = "driver"
    SHIPPING_AGENT = "shipping_agent"


@dataclass(frozen=True)
class WindowTotals:
    revenue: float
    orders: int
    customers: int


def _in_window(column: Any, window: TimeWindow) -> tuple[Any, Any]:
    return column >= window.start_date, column <= window.end_date


class DashboardQueries:
    """Read-only aggregate queries over orders, payments and drivers."""

    def __init__(self, db: Session):
        self.db = db

    # ============ Scalar metrics ============

    def sum_order_revenue(
        self, window: TimeWindow, exclude_statuses: Sequence[str] = EXCLUDED_FROM_REVENUE
    ) -> float:
        query = self.db.query(func.sum(FoodOrder.total_price)).filter(
            *_in_window(FoodOrder.created_at, window)
        )
        if exclude_statuses:
            query = query.filter(FoodOrder.status.notin_(exclude_statuses))
        return float(query.scalar() or 0)

    def count_orders(
        self, window: TimeWindow, exclude_statuses: Sequence[str] = EXCLUDED_FROM_REVENUE
    ) -> int:
        query = self.db.query(func.count(FoodOrder.id)).filter(
            *_in_window(FoodOrder.created_at, window)
        )
        if exclude_statuses:
            query = query.filter(FoodOrder.status.notin_(exclude_statuses))
        return query.scalar() or 0

    def count_distinct_customers(self, window: TimeWindow) -> int:
        # Cancelled orders count here, unlike revenue and order count.
        return (
            self.db.query(func.count(func.distinct(FoodOrder.user_id)))
            .filter(*_in_window(FoodOrder.created_at, window))
            .scalar()
            or 0
        )

    def count_online_drivers(self) -> int:
        """Drivers online right now; not windowed."""
        return (
            self.db.query(func.count(DeliveryDriver.id))
            .filter(DeliveryDriver.is_online.is_(True))
            .scalar()
            or 0
        )

    def window_totals(self, window: TimeWindow) -> WindowTotals:
        return WindowTotals(
            revenue=self.sum_order_revenue(window),
            orders=self.count_orders(window),
            customers=self.count_distinct_customers(window),
        )

    # ============ Grouped metrics ============

    def group_payments_by_method(self, window: TimeWindow) -> list[NamedValue]:
        """Sum completed food-order payments per lower-cased method."""
        method = func.lower(Payment.method)
        rows = (
            self.db.query(method.label("method"), func.sum(Payment.amount).label("amount"))
            .filter(
                *_in_window(Payment.created_at, window),
                Payment.status == PaymentStatus.COMPLETED.value,
                Payment.order_type == PaymentOrderType.FOOD_ORDER.value,
            )
            .group_by(method)
            .order_by(method)
            .all()
        )
        return [NamedValue(name=row.method, value=round(float(row.amount or 0), 2)) for row in rows]

    def group_orders_by_status(self, window: TimeWindow) -> list[tuple[str, int]]:
        rows = (
            self.db.query(FoodOrder.status, func.count(FoodOrder.id))
            .filter(*_in_window(FoodOrder.created_at, window))
            .group_by(FoodOrder.status)
            .order_by(FoodOrder.status)
            .all()
        )
        return [(status, count) for status, count in rows]

    def daily_revenue(self, window: TimeWindow) -> list[tuple[date, float]]:
        """Revenue per calendar day, ascending; days without qualifying orders are absent."""
        rows = (
            self.db.query(FoodOrder.created_at, FoodOrder.total_price)
            .filter(
                *_in_window(FoodOrder.created_at, window),
                FoodOrder.status.notin_(EXCLUDED_FROM_REVENUE),
            )
            .order_by(FoodOrder.created_at)
            .all()
        )
        totals: dict[date, float] = {}
        for created_at, total_price in rows:
            day = created_at.date()
            totals[day] = totals.get(day, 0.0) + float(total_price or 0)
        return sorted(totals.items())

    # ============ Leaderboards ============

    def rank_entities(
        self, window: TimeWindow, entity_kind: EntityKind | str, limit: int
    ) -> list[Any]:
        """Rank entities of ``entity_kind`` by their activity in ``window``.

        Restaurants rank by revenue, products by quantity sold, drivers and
        shipping agents by order count; ties break on id. Entities without
        matching orders are omitted.

        Raises:
            ValueError: If ``entity_kind`` is not a known kind.
        """
        kind = EntityKind(entity_kind)
        if kind == EntityKind.RESTAURANT:
            return self._rank_restaurants(window, limit)
        if kind == EntityKind.PRODUCT:
            return self._rank_products(window, limit)
        if kind == EntityKind.DRIVER:
            return self._rank_drivers(window, limit)
        return self._rank_shipping_agents(window, limit)

    def _rank_restaurants(self, window: TimeWindow, limit: int) -> list[RestaurantRanking]:
        order_count = func.count(FoodOrder.id)
        revenue = func.coalesce(func.sum(FoodOrder.total_price), 0)
        rows = (
            self.db.query(
                Restaurant.id,
                Restaurant.name_en,
                Restaurant.name_ar,
                Restaurant.rating,
                order_count.label("orders"),
                revenue.label("revenue"),
            )
            .join(FoodOrder, FoodOrder.restaurant_id == Restaurant.id)
            .filter(
                *_in_window(FoodOrder.created_at, window),
                FoodOrder.status.notin_(EXCLUDED_FROM_REVENUE),
            )
            .group_by(Restaurant.id, Restaurant.name_en, Restaurant.name_ar, Restaurant.rating)
            .order_by(revenue.desc(), Restaurant.id)
            .limit(limit)
            .all()
        )
        return [
            RestaurantRanking(
                id=str(r.id),
                name=r.name_en or r.name_ar or "Unknown",
                name_en=r.name_en,
                name_ar=r.name_ar,
                rating=r.rating or 0,
                total_orders=r.orders,
                total_revenue=round(float(r.revenue), 2),
            )
            for r in rows
        ]

    def _rank_products(self, window: TimeWindow, limit: int) -> list[ProductRanking]:
        quantity = func.coalesce(func.sum(FoodOrderItem.quantity), 0)
        revenue = func.coalesce(func.sum(FoodOrderItem.price * FoodOrderItem.quantity), 0)
        rows = (
            self.db.query(
                Product.id,
                Product.name_en,
                Product.name_ar,
                Product.price,
                Product.rating,
                quantity.label("quantity"),
                revenue.label("revenue"),
            )
            .join(FoodOrderItem, FoodOrderItem.product_id == Product.id)
            .join(FoodOrder, FoodOrder.id == FoodOrderItem.order_id)
            .filter(
                *_in_window(FoodOrder.created_at, window),
                FoodOrder.status.notin_(EXCLUDED_FROM_REVENUE),
            )
            .group_by(Product.id, Product.name_en, Product.name_ar, Product.price, Product.rating)
            .order_by(quantity.desc(), Product.id)
            .limit(limit)
            .all()
        )
        return [
            ProductRanking(
                id=str(p.id),
                name=p.name_en or p.name_ar or "Unknown",
                name_en=p.name_en,
                name_ar=p.name_ar,
                price=p.price,
                rating=p.rating or 0,
                total_quantity=int(p.quantity),
                total_revenue=round(float(p.revenue), 2),
            )
            for p in rows
        ]

    def _rank_drivers(self, window: TimeWindow, limit: int) -> list[DriverPerformance]:
        order_count = func.count(FoodOrder.id)
        rows = (
            self.db.query(
                DeliveryDriver.id,
                User.name,
                User.phone,
                DeliveryDriver.rating,
                DeliveryDriver.is_online,
                order_count.label("orders"),
            )
            .join(User, User.id == DeliveryDriver.user_id)
            .join(FoodOrder, FoodOrder.driver_id == DeliveryDriver.id)
            .filter(
                *_in_window(FoodOrder.created_at, window),
                FoodOrder.status.notin_(EXCLUDED_FROM_REVENUE),
            )
            .group_by(
                DeliveryDriver.id,
                User.name,
                User.phone,
                DeliveryDriver.rating,
                DeliveryDriver.is_online,
            )
            .order_by(order_count.desc(), DeliveryDriver.id)
            .limit(limit)
            .all()
        )
        return [
            DriverPerformance(
                id=str(d.id),
                name=d.name or "Unknown",
                phone=d.phone,
                rating=d.rating or 0,
                is_online=bool(d.is_online),
                total_orders=d.orders,
            )
            for d in rows
        ]

    def _rank_shipping_agents(
        self, window: TimeWindow, limit: int
    ) -> list[ShippingAgentPerformance]:
        order_count = func.count(ShippingOrder.id)
        rows = (
            self.db.query(
                ShippingAgent.id,
                User.name,
                User.phone,
                ShippingAgent.rating,
                ShippingAgent.is_active,
                order_count.label("orders"),
            )
            .join(User, User.id == ShippingAgent.user_id)
            .join(ShippingOrder, ShippingOrder.agent_id == ShippingAgent.id)
            .filter(*_in_window(ShippingOrder.created_at, window))
            .group_by(
                ShippingAgent.id,
                User.name,
                User.phone,
                ShippingAgent.rating,
                ShippingAgent.is_active,
            )
            .order_by(order_count.desc(), ShippingAgent.id)
            .limit(limit)
            .all()
        )
        return [
            ShippingAgentPerformance(
                id=str(a.id),
                name=a.name or "Unknown",
                phone=a.phone,
                rating=a.rating or 0,
                is_active=bool(a.is_active),
                total_orders=a.orders,
            )
            for a in rows
        ]
