"""
Database base module - imports all models so they are registered on ``Base.metadata``.

String-based relationships (``relationship("DeliveryDriver")``) only resolve
once every mapped class has been imported, so the application and the test
suite import this module before touching the session.
"""

from app.activity.models.activity_log import ActivityLog
from app.auth.models.user import Role, User, user_roles
from app.drivers.models.driver import DeliveryDriver
from app.orders.models.order import FoodOrder, FoodOrderItem
from app.orders.models.payment import Payment
from app.promotions.models.promotion import Coupon, CouponUsage, Promotion
from app.restaurants.models.restaurant import Category, Product, Restaurant
from app.reviews.models.rating import Rating
from app.shipping.models.shipping import ShippingAgent, ShippingOrder
from app.support.models.ticket import SupportTicket

__all__ = [
    "ActivityLog",
    "Role",
    "User",
    "user_roles",
    "DeliveryDriver",
    "FoodOrder",
    "FoodOrderItem",
    "Payment",
    "Promotion",
    "Coupon",
    "CouponUsage",
    "Category",
    "Product",
    "Restaurant",
    "Rating",
    "ShippingAgent",
    "ShippingOrder",
    "SupportTicket",
]
