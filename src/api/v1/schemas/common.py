"""Common Pydantic schemas shared across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error_code: str
    message: str
    details: Any | None = None


# Documented on every write that may be deferred for offline replay
QUEUED_RESPONSE: dict[int | str, dict[str, Any]] = {
    202: {"model": ErrorResponse, "description": "Store unreachable; write queued for replay"},
    503: {"model": ErrorResponse, "description": "Store unavailable"},
}
