import enum
import uuid
from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utcnow
from app.db.session import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentOrderType(str, enum.Enum):
    FOOD_ORDER = "FOOD_ORDER"
    SHIPPING_ORDER = "SHIPPING_ORDER"


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    # Points at a food or shipping order depending on order_type
    order_id: Mapped[uuid.UUID | None] = mapped_column(default=None, index=True)
    method: Mapped[str] = mapped_column(String(32))
    amount: Mapped[float] = mapped_column()
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)
    order_type: Mapped[str] = mapped_column(
        String(20), default=PaymentOrderType.FOOD_ORDER.value, index=True
    )

    created_at: Mapped[datetime] = mapped_column(default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, method={self.method}, status={self.status})>"
