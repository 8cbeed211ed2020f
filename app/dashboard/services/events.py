"""Dashboard change events over Redis pub/sub.

Parts of the platform that mutate dashboard-relevant data publish a small
event; dashboard clients subscribe and re-fetch the affected widget instead
of polling. The aggregation services are not involved.
"""

import enum
from collections.abc import AsyncIterator, Iterable
from datetime import datetime
from typing import Any

import anyio
import structlog
from pydantic import BaseModel, Field, ValidationError
from redis.asyncio import Redis

from app.core.config import settings
from app.core.datetime_utils import UTCDatetime, utcnow

logger = structlog.get_logger(__name__)


class DashboardEventKind(str, enum.Enum):
    ORDER_CREATED = "order_created"
    ORDER_STATUS_CHANGED = "order_status_changed"
    DRIVER_STATUS_CHANGED = "driver_status_changed"
    PAYMENT_COMPLETED = "payment_completed"


class DashboardEvent(BaseModel):
    kind: DashboardEventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: UTCDatetime = Field(default_factory=utcnow)

    def to_sse(self) -> str:
        """Render as a server-sent-events frame."""
        return f"event: {self.kind.value}\ndata: {self.model_dump_json()}\n\n"


class DashboardEventPublisher:
    """Publishes and subscribes to ``<prefix>:<kind>`` channels."""

    def __init__(self, redis: Redis, channel_prefix: str | None = None):
        self.redis = redis
        self.channel_prefix = channel_prefix or settings.DASHBOARD_EVENTS_CHANNEL

    def channel_for(self, kind: DashboardEventKind) -> str:
        return f"{self.channel_prefix}:{kind.value}"

    async def publish(self, event: DashboardEvent) -> int:
        """Publish ``event``; returns the number of subscribers that received it."""
        receivers: int = await self.redis.publish(
            self.channel_for(event.kind), event.model_dump_json()
        )
        logger.info("dashboard_event_published", kind=event.kind.value, receivers=receivers)
        return receivers

    async def subscribe(
        self, kinds: Iterable[DashboardEventKind] | None = None
    ) -> AsyncIterator[DashboardEvent]:
        """Yield events of ``kinds`` (all kinds when omitted) until the consumer stops."""
        channels = [self.channel_for(kind) for kind in (kinds or DashboardEventKind)]
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(*channels)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield DashboardEvent.model_validate_json(message["data"])
                except ValidationError:
                    logger.warning("dashboard_event_malformed", channel=message.get("channel"))
        finally:
            # Runs while the stream task is being cancelled on client disconnect
            with anyio.CancelScope(shield=True):
                await pubsub.unsubscribe(*channels)
                await pubsub.aclose()


async def publish_dashboard_event(
    redis: Redis,
    kind: DashboardEventKind,
    payload: dict[str, Any] | None = None,
    occurred_at: datetime | None = None,
) -> int:
    """Publish one dashboard event on the configured channel prefix.

    This is the entry point for the order, driver and payment write paths;
    they own the Redis client and call it after committing their change.
    """
    event = DashboardEvent(kind=kind, payload=payload or {}, occurred_at=occurred_at or utcnow())
    return await DashboardEventPublisher(redis).publish(event)
