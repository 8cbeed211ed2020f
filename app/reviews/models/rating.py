import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utcnow
from app.db.session import Base


class Rating(Base):
    """A 1-5 star rating left by a customer on a restaurant, product or driver."""

    __tablename__ = "ratings"
    __table_args__ = (Index("ix_ratings_target", "target_type", "target_id"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    target_type: Mapped[str] = mapped_column(String(20))  # restaurant, product, driver
    target_id: Mapped[uuid.UUID] = mapped_column()
    rating: Mapped[int] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow, index=True)
