import enum
import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.datetime_utils import utcnow
from app.db.session import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Orders still moving through the kitchen / delivery pipeline
OPEN_ORDER_STATUSES: tuple[str, ...] = (
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
    OrderStatus.ON_THE_WAY.value,
)


class FoodOrder(Base):
    __tablename__ = "food_orders"
    __table_args__ = (
        Index("ix_food_orders_created_status", "created_at", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"), index=True
    )
    driver_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("delivery_drivers.id", ondelete="SET NULL"), index=True, default=None
    )

    # Free-form lower-case string, see OrderStatus for the known values
    status: Mapped[str] = mapped_column(String(32), default=OrderStatus.PENDING.value)
    total_price: Mapped[float] = mapped_column(default=0.0)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    items = relationship("FoodOrderItem", back_populates="order", cascade="all, delete-orphan")
    user = relationship("User")
    restaurant = relationship("Restaurant")
    driver = relationship("DeliveryDriver")

    @property
    def order_number(self) -> str:
        return self.id.hex[:8].upper()

    def __repr__(self) -> str:
        return f"<FoodOrder(id={self.id}, status={self.status}, total={self.total_price})>"


class FoodOrderItem(Base):
    __tablename__ = "food_order_items"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("food_orders.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    quantity: Mapped[int] = mapped_column(default=1)
    price: Mapped[float] = mapped_column()  # Unit price at order time

    order = relationship("FoodOrder", back_populates="items")
    product = relationship("Product")
