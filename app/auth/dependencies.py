import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

import structlog
from fastapi import Cookie, Depends, Header
from sqlalchemy.orm import Session

from app.auth.models.user import Role, User
from app.auth.permissions import Permissions
from app.core import security
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.db.session import get_db

logger = structlog.get_logger(__name__)


async def get_access_token(
    access_token: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Read the access token from the cookie, falling back to a Bearer header."""
    if access_token:
        return access_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    raise UnauthorizedError("Authentication required. Please login.")


async def get_current_user(
    access_token: str = Depends(get_access_token),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from access token"""
    payload = security.decode_token(access_token)
    if payload is None or payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token.")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Invalid or expired token.") from None

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


async def get_permissions(db: Session = Depends(get_db)) -> Permissions:
    return Permissions.from_roles(db.query(Role).all())


def require_permission(module: str, action: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory rejecting users whose roles lack ``module:action``."""

    async def dependency(
        current_user: User = Depends(get_current_user),
        permissions: Permissions = Depends(get_permissions),
    ) -> User:
        if not permissions.has(current_user, module, action):
            logger.warning(
                "permission_denied",
                roles=current_user.role_names,
                module=module,
                action=action,
            )
            raise ForbiddenError()
        return current_user

    return dependency
