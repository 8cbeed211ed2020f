"""Operational statistics: support, shipping, catalog, promotions and ratings."""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.dashboard.schemas.dashboard import (
    CategoryStats,
    CouponStats,
    PromotionStats,
    RatingStats,
    RatingTypeStats,
    RatingValueCount,
    ShippingOrderStats,
    StatusCount,
    SupportTicketStats,
    TypeCount,
)
from app.dashboard.services.analytics.base import PeriodToken, resolve_window
from app.promotions.models.promotion import Coupon, CouponUsage, Promotion
from app.restaurants.models.restaurant import Category
from app.reviews.models.rating import Rating
from app.shipping.models.shipping import ShippingOrder
from app.support.models.ticket import UNRESOLVED_TICKET_STATUSES, SupportTicket, TicketStatus

FINISHED_SHIPPING_STATUSES = ("delivered", "cancelled")


class OperationsStatsService:
    """Per-domain counters shown in the secondary dashboard widgets."""

    @staticmethod
    def support_tickets(
        db: Session, period: str | PeriodToken | None, now: datetime
    ) -> SupportTicketStats:
        window = resolve_window(period, now)
        in_window = (
            SupportTicket.created_at >= window.start_date,
            SupportTicket.created_at <= window.end_date,
        )

        total = db.query(func.count(SupportTicket.id)).filter(*in_window).scalar() or 0
        open_count = (
            db.query(func.count(SupportTicket.id))
            .filter(*in_window, SupportTicket.status.in_(UNRESOLVED_TICKET_STATUSES))
            .scalar()
            or 0
        )
        closed = (
            db.query(func.count(SupportTicket.id))
            .filter(*in_window, SupportTicket.status == TicketStatus.CLOSED.value)
            .scalar()
            or 0
        )
        by_status = (
            db.query(SupportTicket.status, func.count(SupportTicket.id))
            .filter(*in_window)
            .group_by(SupportTicket.status)
            .order_by(SupportTicket.status)
            .all()
        )

        return SupportTicketStats(
            total=total,
            open=open_count,
            closed=closed,
            by_status=[StatusCount(status=s, count=c) for s, c in by_status],
        )

    @staticmethod
    def shipping_orders(
        db: Session, period: str | PeriodToken | None, now: datetime
    ) -> ShippingOrderStats:
        window = resolve_window(period, now)
        in_window = (
            ShippingOrder.created_at >= window.start_date,
            ShippingOrder.created_at <= window.end_date,
        )

        total = db.query(func.count(ShippingOrder.id)).filter(*in_window).scalar() or 0
        active = (
            db.query(func.count(ShippingOrder.id))
            .filter(*in_window, ShippingOrder.status.notin_(FINISHED_SHIPPING_STATUSES))
            .scalar()
            or 0
        )
        revenue = (
            db.query(func.sum(ShippingOrder.final_cost))
            .filter(
                *in_window,
                ShippingOrder.status == "delivered",
                ShippingOrder.final_cost.isnot(None),
            )
            .scalar()
        )

        return ShippingOrderStats(total=total, active=active, revenue=round(float(revenue or 0), 2))

    @staticmethod
    def categories(db: Session) -> CategoryStats:
        """Catalog-wide category counts; not scoped to a period."""
        total = db.query(func.count(Category.id)).scalar() or 0
        active = (
            db.query(func.count(Category.id)).filter(Category.is_active.is_(True)).scalar() or 0
        )
        by_type = (
            db.query(Category.type, func.count(Category.id))
            .group_by(Category.type)
            .order_by(Category.type)
            .all()
        )

        return CategoryStats(
            total=total,
            active=active,
            inactive=total - active,
            by_type=[TypeCount(type=t, count=c) for t, c in by_type],
        )

    @staticmethod
    def promotions(db: Session, period: str | PeriodToken | None, now: datetime) -> PromotionStats:
        """Promotions created in the period, plus live/expired/upcoming counts as of ``now``."""
        window = resolve_window(period, now)

        total = (
            db.query(func.count(Promotion.id))
            .filter(
                Promotion.created_at >= window.start_date,
                Promotion.created_at <= window.end_date,
            )
            .scalar()
            or 0
        )
        active = (
            db.query(func.count(Promotion.id))
            .filter(
                Promotion.is_active.is_(True),
                Promotion.start_at <= now,
                Promotion.end_at >= now,
            )
            .scalar()
            or 0
        )
        expired = db.query(func.count(Promotion.id)).filter(Promotion.end_at < now).scalar() or 0
        upcoming = db.query(func.count(Promotion.id)).filter(Promotion.start_at > now).scalar() or 0

        return PromotionStats(total=total, active=active, expired=expired, upcoming=upcoming)

    @staticmethod
    def coupons(db: Session, period: str | PeriodToken | None, now: datetime) -> CouponStats:
        window = resolve_window(period, now)
        created_in_window = (
            Coupon.created_at >= window.start_date,
            Coupon.created_at <= window.end_date,
        )

        total = db.query(func.count(Coupon.id)).filter(*created_in_window).scalar() or 0
        active = (
            db.query(func.count(Coupon.id))
            .filter(Coupon.is_active.is_(True), Coupon.start_at <= now, Coupon.end_at >= now)
            .scalar()
            or 0
        )
        expired = db.query(func.count(Coupon.id)).filter(Coupon.end_at < now).scalar() or 0
        total_usage = (
            db.query(func.count(CouponUsage.id))
            .filter(
                CouponUsage.used_at >= window.start_date,
                CouponUsage.used_at <= window.end_date,
            )
            .scalar()
            or 0
        )
        by_discount_type = (
            db.query(Coupon.discount_type, func.count(Coupon.id))
            .filter(*created_in_window)
            .group_by(Coupon.discount_type)
            .order_by(Coupon.discount_type)
            .all()
        )

        return CouponStats(
            total=total,
            active=active,
            expired=expired,
            total_usage=total_usage,
            by_discount_type=[TypeCount(type=t, count=c) for t, c in by_discount_type],
        )

    @staticmethod
    def ratings(db: Session, period: str | PeriodToken | None, now: datetime) -> RatingStats:
        window = resolve_window(period, now)
        in_window = (Rating.created_at >= window.start_date, Rating.created_at <= window.end_date)

        total, average = (
            db.query(func.count(Rating.id), func.avg(Rating.rating)).filter(*in_window).one()
        )
        by_type = (
            db.query(Rating.target_type, func.count(Rating.id), func.avg(Rating.rating))
            .filter(*in_window)
            .group_by(Rating.target_type)
            .order_by(Rating.target_type)
            .all()
        )
        by_value = (
            db.query(Rating.rating, func.count(Rating.id))
            .filter(*in_window)
            .group_by(Rating.rating)
            .order_by(Rating.rating.desc())
            .all()
        )

        return RatingStats(
            total=total or 0,
            average=round(float(average or 0), 2),
            by_type=[
                RatingTypeStats(type=t, count=c, average=round(float(avg or 0), 2))
                for t, c, avg in by_type
            ],
            by_value=[RatingValueCount(rating=r, count=c) for r, c in by_value],
        )
