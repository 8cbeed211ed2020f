"""Response schemas for the admin dashboard."""

from pydantic import BaseModel, Field

from app.core.datetime_utils import UTCDatetime

# ============ KPI Models ============


class MetricValue(BaseModel):
    """Current-period value with its change against the previous period."""

    value: int | float
    change: float = Field(description="Signed percent change vs. previous period")


class DashboardKPIs(BaseModel):
    """Headline KPI cards."""

    revenue: MetricValue
    orders: MetricValue
    customers: MetricValue
    active_drivers: MetricValue = Field(description="Live gauge; change is always 0")


# ============ Charts & Breakdowns ============


class RevenueDataPoint(BaseModel):
    """Single data point for the revenue chart."""

    date: str = Field(description="Calendar day, YYYY-MM-DD")
    revenue: float


class NamedValue(BaseModel):
    """Slice of a pie/donut chart."""

    name: str
    value: float


class OrdersAnalytics(BaseModel):
    payment_methods: list[NamedValue]
    order_statuses: list[NamedValue]


class StatusCount(BaseModel):
    status: str
    count: int


class TypeCount(BaseModel):
    type: str
    count: int


# ============ Leaderboards ============


class RestaurantRanking(BaseModel):
    id: str
    name: str
    name_en: str | None = None
    name_ar: str | None = None
    rating: float
    total_orders: int
    total_revenue: float


class ProductRanking(BaseModel):
    id: str
    name: str
    name_en: str | None = None
    name_ar: str | None = None
    price: float
    rating: float
    total_quantity: int
    total_revenue: float


class DriverPerformance(BaseModel):
    id: str
    name: str
    phone: str | None = None
    rating: float
    is_online: bool
    total_orders: int


class ShippingAgentPerformance(BaseModel):
    id: str
    name: str
    phone: str | None = None
    rating: float
    is_active: bool
    total_orders: int


# ============ Feeds ============


class ActiveOrder(BaseModel):
    id: str
    order_number: str
    customer_name: str
    restaurant_name: str | None = None
    status: str
    driver_name: str | None = None
    total_price: float
    created_at: UTCDatetime


class ActivityEntry(BaseModel):
    id: str
    reference: str
    status: str = Field(description="Logged action")
    entity_type: str
    user_name: str
    created_at: UTCDatetime


# ============ Operational Stats ============


class SupportTicketStats(BaseModel):
    total: int
    open: int
    closed: int
    by_status: list[StatusCount]


class ShippingOrderStats(BaseModel):
    total: int
    active: int
    revenue: float


class CategoryStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_type: list[TypeCount]


class PromotionStats(BaseModel):
    total: int
    active: int
    expired: int
    upcoming: int


class CouponStats(BaseModel):
    total: int
    active: int
    expired: int
    total_usage: int
    by_discount_type: list[TypeCount]


class RatingTypeStats(BaseModel):
    type: str
    count: int
    average: float


class RatingValueCount(BaseModel):
    rating: int
    count: int


class RatingStats(BaseModel):
    total: int
    average: float
    by_type: list[RatingTypeStats]
    by_value: list[RatingValueCount]
