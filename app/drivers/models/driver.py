import uuid
from datetime import datetime

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.datetime_utils import utcnow
from app.db.session import Base


class DeliveryDriver(Base):
    __tablename__ = "delivery_drivers"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True
    )
    is_online: Mapped[bool] = mapped_column(default=False, index=True)
    rating: Mapped[float] = mapped_column(default=0.0)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    user = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return f"<DeliveryDriver(id={self.id}, is_online={self.is_online})>"
