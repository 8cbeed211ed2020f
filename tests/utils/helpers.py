from typing import Any

from app.auth.models.user import User
from app.core.security import create_access_token


def create_token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email})


def create_auth_headers(token: str) -> dict[str, str]:
    """Create Authorization headers with Bearer token.

    The cookie works too; headers keep the tests independent of client cookie state.
    """
    return {"Authorization": f"Bearer {token}"}


def assert_success_envelope(data: dict[str, Any]) -> Any:
    assert data["success"] is True
    assert "data" in data
    return data["data"]


def assert_error_envelope(data: dict[str, Any], message: str | None = None) -> None:
    assert data["success"] is False
    assert "message" in data
    if message is not None:
        assert data["message"] == message
