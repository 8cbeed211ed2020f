from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Applied to every route through SlowAPIMiddleware; dashboards poll, so the
# default is generous.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
