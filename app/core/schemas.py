"""Response envelope shared by all endpoints.

Success::

    {"success": true, "data": {...}}

Failure (built by ``app.core.exceptions``)::

    {"success": false, "message": "Error fetching dashboard KPIs", "error": "..."}
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    error: str | None = None

    @model_serializer(mode="wrap")
    def _omit_empty_notes(self, handler: SerializerFunctionWrapHandler):
        # message and error appear only when set, as in the failure envelope
        dumped = handler(self)
        for key in ("message", "error"):
            if dumped.get(key) is None:
                dumped.pop(key, None)
        return dumped


def success_response(data: T) -> ApiResponse[T]:
    """Wrap ``data`` in a successful envelope."""
    return ApiResponse(success=True, data=data)
