"""Pydantic schemas for Event API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class EventResponse(BaseModel):
    """Schema for Event response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Summer Rooftop Party",
                "event_code": "ROOF24",
                "starts_at": "2026-07-01T18:00:00Z",
                "expires_at": "2026-07-02T02:00:00Z",
                "timezone": "Europe/London",
                "is_private": False,
            }
        },
    )

    id: UUID
    name: str
    event_code: str
    description: str | None = None
    location: str | None = None
    starts_at: datetime
    expires_at: datetime
    timezone: str
    is_private: bool


class EventDetailResponse(BaseModel):
    """Schema for single Event."""

    data: EventResponse
