"""Tests for the dashboard aggregate queries."""

from datetime import date, datetime, timedelta

import pytest

from app.dashboard.services.analytics.base import resolve_window
from app.dashboard.services.analytics.queries import DashboardQueries, EntityKind
from tests.utils.factories import (
    create_driver_factory,
    create_order_factory,
    create_order_item_factory,
    create_payment_factory,
    create_product_factory,
    create_restaurant_factory,
    create_shipping_agent_factory,
    create_shipping_order_factory,
    create_user_factory,
)

DAY_1 = datetime(2024, 3, 1, 10, 0)
DAY_2 = datetime(2024, 3, 2, 18, 0)


@pytest.fixture
def window(now):
    return resolve_window("month", now)


@pytest.fixture
def restaurant(db_session):
    return create_restaurant_factory(db_session, name_en="Shawarma House")


@pytest.fixture
def customer(db_session):
    return create_user_factory(db_session)


class TestScalarMetrics:
    def test_revenue_excludes_cancelled_orders(self, db_session, window, restaurant, customer):
        create_order_factory(db_session, restaurant, customer, 100, "delivered", DAY_1)
        create_order_factory(db_session, restaurant, customer, 999, "cancelled", DAY_1)

        assert DashboardQueries(db_session).sum_order_revenue(window) == 100

    def test_empty_window_is_zero(self, db_session, window):
        queries = DashboardQueries(db_session)
        assert queries.sum_order_revenue(window) == 0.0
        assert queries.count_orders(window) == 0
        assert queries.count_distinct_customers(window) == 0

    def test_window_bounds_are_inclusive(self, db_session, window, restaurant, customer):
        create_order_factory(db_session, restaurant, customer, 10, "delivered", window.start_date)
        create_order_factory(db_session, restaurant, customer, 20, "delivered", window.end_date)
        after_end = window.end_date + timedelta(seconds=1)
        create_order_factory(db_session, restaurant, customer, 40, "delivered", after_end)
        before_start = window.start_date - timedelta(seconds=1)
        create_order_factory(db_session, restaurant, customer, 80, "delivered", before_start)

        assert DashboardQueries(db_session).sum_order_revenue(window) == 30

    def test_distinct_customers_include_cancelled_orders(
        self, db_session, window, restaurant, customer
    ):
        other = create_user_factory(db_session)
        create_order_factory(db_session, restaurant, customer, 10, "delivered", DAY_1)
        create_order_factory(db_session, restaurant, customer, 15, "pending", DAY_2)
        create_order_factory(db_session, restaurant, other, 20, "cancelled", DAY_1)

        queries = DashboardQueries(db_session)
        assert queries.count_distinct_customers(window) == 2
        assert queries.count_orders(window) == 2

    def test_online_drivers_ignore_window(self, db_session):
        create_driver_factory(db_session, is_online=True)
        create_driver_factory(db_session, is_online=True)
        create_driver_factory(db_session, is_online=False)

        assert DashboardQueries(db_session).count_online_drivers() == 2


class TestMonthScenario:
    """Two qualifying orders on day 1 and a cancelled one on day 2."""

    @pytest.fixture(autouse=True)
    def seed(self, db_session, restaurant, customer):
        create_order_factory(db_session, restaurant, customer, 50, "delivered", DAY_1)
        create_order_factory(db_session, restaurant, customer, 30, "preparing", DAY_1)
        create_order_factory(db_session, restaurant, customer, 20, "cancelled", DAY_2)

    def test_revenue_and_count(self, db_session, window):
        totals = DashboardQueries(db_session).window_totals(window)
        assert totals.revenue == 80
        assert totals.orders == 2

    def test_chart_has_only_day_one(self, db_session, window):
        assert DashboardQueries(db_session).daily_revenue(window) == [(date(2024, 3, 1), 80.0)]

    def test_status_breakdown_keeps_cancelled(self, db_session, window):
        assert DashboardQueries(db_session).group_orders_by_status(window) == [
            ("cancelled", 1),
            ("delivered", 1),
            ("preparing", 1),
        ]


class TestPaymentBreakdown:
    def test_only_completed_methods_appear(self, db_session, window):
        create_payment_factory(db_session, method="cash", amount=20, created_at=DAY_1)
        create_payment_factory(db_session, method="cash", amount=5.25, created_at=DAY_2)
        create_payment_factory(
            db_session, method="card", amount=40, status="failed", created_at=DAY_1
        )

        breakdown = DashboardQueries(db_session).group_payments_by_method(window)

        assert [(m.name, m.value) for m in breakdown] == [("cash", 25.25)]

    def test_methods_are_case_folded(self, db_session, window):
        create_payment_factory(db_session, method="CARD", amount=10, created_at=DAY_1)
        create_payment_factory(db_session, method="card", amount=15, created_at=DAY_1)
        create_payment_factory(db_session, method="wallet", amount=7, created_at=DAY_1)

        breakdown = DashboardQueries(db_session).group_payments_by_method(window)

        assert [(m.name, m.value) for m in breakdown] == [("card", 25.0), ("wallet", 7.0)]

    def test_shipping_payments_are_excluded(self, db_session, window):
        create_payment_factory(
            db_session, method="cash", amount=10, order_type="SHIPPING_ORDER", created_at=DAY_1
        )

        assert DashboardQueries(db_session).group_payments_by_method(window) == []


class TestLeaderboards:
    def test_restaurants_truncated_to_limit(self, db_session, window, customer):
        restaurants = []
        for i in range(15):
            restaurant = create_restaurant_factory(db_session, name_en=f"Restaurant {i:02d}")
            create_order_factory(db_session, restaurant, customer, 100 + i * 10, "delivered", DAY_1)
            restaurants.append(restaurant)

        ranking = DashboardQueries(db_session).rank_entities(window, EntityKind.RESTAURANT, 10)

        assert len(ranking) == 10
        revenues = [entry.total_revenue for entry in ranking]
        assert revenues == sorted(revenues, reverse=True)
        assert ranking[0].name == "Restaurant 14"
        # 11th best earns 140 and must not make the cut
        assert str(restaurants[4].id) not in {entry.id for entry in ranking}

    def test_restaurant_ranking_excludes_cancelled(self, db_session, window, restaurant, customer):
        create_order_factory(db_session, restaurant, customer, 60, "delivered", DAY_1)
        create_order_factory(db_session, restaurant, customer, 500, "cancelled", DAY_1)

        [entry] = DashboardQueries(db_session).rank_entities(window, "restaurant", 10)

        assert entry.total_orders == 1
        assert entry.total_revenue == 60

    def test_restaurants_without_orders_are_omitted(self, db_session, window, restaurant):
        create_restaurant_factory(db_session)
        assert DashboardQueries(db_session).rank_entities(window, "restaurant", 10) == []

    def test_products_rank_by_quantity(self, db_session, window, restaurant, customer):
        burger = create_product_factory(db_session, restaurant, name_en="Burger", price=8)
        fries = create_product_factory(db_session, restaurant, name_en="Fries", price=3)
        order = create_order_factory(db_session, restaurant, customer, 25, "delivered", DAY_1)
        create_order_item_factory(db_session, order, burger, quantity=2)
        create_order_item_factory(db_session, order, fries, quantity=3)
        cancelled = create_order_factory(db_session, restaurant, customer, 80, "cancelled", DAY_1)
        create_order_item_factory(db_session, cancelled, burger, quantity=10)

        ranking = DashboardQueries(db_session).rank_entities(window, "product", 10)

        assert [(p.name, p.total_quantity, p.total_revenue) for p in ranking] == [
            ("Fries", 3, 9.0),
            ("Burger", 2, 16.0),
        ]

    def test_drivers_rank_by_order_count(self, db_session, window, restaurant, customer):
        busy = create_driver_factory(db_session, name="Busy Driver")
        quiet = create_driver_factory(db_session, name="Quiet Driver", is_online=False)
        for _ in range(3):
            create_order_factory(db_session, restaurant, customer, 10, "delivered", DAY_1, busy)
        create_order_factory(db_session, restaurant, customer, 10, "on_the_way", DAY_2, quiet)

        ranking = DashboardQueries(db_session).rank_entities(window, "driver", 10)

        assert [(d.name, d.total_orders, d.is_online) for d in ranking] == [
            ("Busy Driver", 3, True),
            ("Quiet Driver", 1, False),
        ]

    def test_shipping_agents_rank_by_order_count(self, db_session, window, customer):
        agent = create_shipping_agent_factory(db_session, name="Agent Smith")
        create_shipping_order_factory(db_session, customer, agent, "delivered", 12, DAY_1)
        create_shipping_order_factory(db_session, customer, agent, "pending", None, DAY_2)
        create_shipping_order_factory(db_session, customer, None, "pending", None, DAY_2)

        [entry] = DashboardQueries(db_session).rank_entities(window, "shipping_agent", 10)

        assert entry.name == "Agent Smith"
        assert entry.total_orders == 2

    def test_unknown_kind_raises(self, db_session, window):
        with pytest.raises(ValueError):
            DashboardQueries(db_session).rank_entities(window, "warehouse", 10)
