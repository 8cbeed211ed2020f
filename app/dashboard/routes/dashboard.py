"""Admin dashboard routes."""

from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.dependencies import require_permission
from app.auth.models.user import User
from app.core.config import settings
from app.core.datetime_utils import utcnow
from app.core.exceptions import DashboardQueryError
from app.core.redis import get_redis
from app.core.schemas import ApiResponse, success_response
from app.dashboard.schemas.dashboard import (
    ActiveOrder,
    ActivityEntry,
    CategoryStats,
    CouponStats,
    DashboardKPIs,
    DriverPerformance,
    OrdersAnalytics,
    ProductRanking,
    PromotionStats,
    RatingStats,
    RestaurantRanking,
    RevenueDataPoint,
    ShippingAgentPerformance,
    ShippingOrderStats,
    StatusCount,
    SupportTicketStats,
)
from app.dashboard.services.analytics import (
    DashboardService,
    OperationsStatsService,
    RankingsService,
)
from app.dashboard.services.events import DashboardEventKind, DashboardEventPublisher
from app.db.session import get_db

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["admin-dashboard"])

PERIOD_DESCRIPTION = "day, week, month or year; anything else means month"

view_reports = require_permission("dashboard", "view")
view_feeds = require_permission("dashboard", "view_feeds")


@contextmanager
def dashboard_query(message: str) -> Iterator[None]:
    """Turn a data-access failure into a DashboardQueryError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("dashboard_query_failed", message=message, error=str(e))
        raise DashboardQueryError(message, error=str(e)) from e


@router.get("/kpis", response_model=ApiResponse[DashboardKPIs])
async def get_kpis(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[DashboardKPIs]:
    """
    Get the KPI cards for the dashboard header.

    Returns revenue, orders, customers and active drivers, each with the
    percent change against the previous window of the same period.
    """
    with dashboard_query("Error fetching dashboard KPIs"):
        return success_response(DashboardService.build_kpis(db, period, now))


@router.get("/revenue-chart", response_model=ApiResponse[list[RevenueDataPoint]])
async def get_revenue_chart(
    period: str = Query("week", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[RevenueDataPoint]]:
    """Daily revenue points; days without revenue are omitted."""
    with dashboard_query("Error fetching revenue chart"):
        return success_response(DashboardService.build_revenue_series(db, period, now))


@router.get("/orders-analytics", response_model=ApiResponse[OrdersAnalytics])
async def get_orders_analytics(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[OrdersAnalytics]:
    with dashboard_query("Error fetching orders analytics"):
        return success_response(DashboardService.build_order_analytics(db, period, now))


@router.get("/order-status-breakdown", response_model=ApiResponse[list[StatusCount]])
async def get_order_status_breakdown(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[StatusCount]]:
    with dashboard_query("Error fetching order status breakdown"):
        return success_response(DashboardService.build_order_status_breakdown(db, period, now))


@router.get("/best-restaurants", response_model=ApiResponse[list[RestaurantRanking]])
async def get_best_restaurants(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[RestaurantRanking]]:
    with dashboard_query("Error fetching best restaurants"):
        return success_response(RankingsService.best_restaurants(db, period, limit, now))


@router.get("/best-products", response_model=ApiResponse[list[ProductRanking]])
async def get_best_products(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[ProductRanking]]:
    with dashboard_query("Error fetching best products"):
        return success_response(RankingsService.best_products(db, period, limit, now))


@router.get("/driver-performance", response_model=ApiResponse[list[DriverPerformance]])
async def get_driver_performance(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[DriverPerformance]]:
    with dashboard_query("Error fetching driver performance"):
        return success_response(RankingsService.driver_performance(db, period, limit, now))


@router.get(
    "/shipping-agents-performance",
    response_model=ApiResponse[list[ShippingAgentPerformance]],
)
async def get_shipping_agents_performance(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[list[ShippingAgentPerformance]]:
    with dashboard_query("Error fetching shipping agents performance"):
        return success_response(
            RankingsService.shipping_agents_performance(db, period, limit, now)
        )


@router.get("/active-orders", response_model=ApiResponse[list[ActiveOrder]])
async def get_active_orders(
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    db: Session = Depends(get_db),
    user: User = Depends(view_feeds),
) -> ApiResponse[list[ActiveOrder]]:
    """Open orders (pending through on the way), newest first."""
    with dashboard_query("Error fetching active orders"):
        return success_response(DashboardService.build_active_orders_feed(db, limit))


@router.get("/recent-activities", response_model=ApiResponse[list[ActivityEntry]])
async def get_recent_activities(
    limit: int = Query(settings.DASHBOARD_DEFAULT_LIMIT, ge=1, le=settings.DASHBOARD_MAX_LIMIT),
    db: Session = Depends(get_db),
    user: User = Depends(view_feeds),
) -> ApiResponse[list[ActivityEntry]]:
    with dashboard_query("Error fetching recent activities"):
        return success_response(DashboardService.build_recent_activity_feed(db, limit))


@router.get("/support-tickets-stats", response_model=ApiResponse[SupportTicketStats])
async def get_support_tickets_stats(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_feeds),
) -> ApiResponse[SupportTicketStats]:
    with dashboard_query("Error fetching support tickets stats"):
        return success_response(OperationsStatsService.support_tickets(db, period, now))


@router.get("/shipping-orders-stats", response_model=ApiResponse[ShippingOrderStats])
async def get_shipping_orders_stats(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[ShippingOrderStats]:
    with dashboard_query("Error fetching shipping orders stats"):
        return success_response(OperationsStatsService.shipping_orders(db, period, now))


@router.get("/categories-stats", response_model=ApiResponse[CategoryStats])
async def get_categories_stats(
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[CategoryStats]:
    with dashboard_query("Error fetching categories stats"):
        return success_response(OperationsStatsService.categories(db))


@router.get("/promotions-stats", response_model=ApiResponse[PromotionStats])
async def get_promotions_stats(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[PromotionStats]:
    with dashboard_query("Error fetching promotions stats"):
        return success_response(OperationsStatsService.promotions(db, period, now))


@router.get("/coupons-stats", response_model=ApiResponse[CouponStats])
async def get_coupons_stats(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[CouponStats]:
    with dashboard_query("Error fetching coupons stats"):
        return success_response(OperationsStatsService.coupons(db, period, now))


@router.get("/ratings-stats", response_model=ApiResponse[RatingStats])
async def get_ratings_stats(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    now: datetime = Depends(utcnow),
    db: Session = Depends(get_db),
    user: User = Depends(view_reports),
) -> ApiResponse[RatingStats]:
    with dashboard_query("Error fetching ratings stats"):
        return success_response(OperationsStatsService.ratings(db, period, now))


@router.get("/events")
async def stream_dashboard_events(
    kinds: list[DashboardEventKind] | None = Query(None, description="Event kinds to follow"),
    redis: Redis = Depends(get_redis),
    user: User = Depends(view_reports),
) -> StreamingResponse:
    """
    Stream dashboard change events as server-sent events.

    Clients re-fetch the affected widget when an event arrives.
    """
    publisher = DashboardEventPublisher(redis)

    async def event_stream() -> AsyncIterator[str]:
        async for event in publisher.subscribe(kinds):
            yield event.to_sse()

    logger.info(
        "dashboard_events_subscribed",
        kinds=[k.value for k in kinds] if kinds else "all",
    )
    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
