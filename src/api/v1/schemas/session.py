"""Pydantic schemas for Session API."""

from uuid import UUID

from pydantic import BaseModel, Field

from api.v1.schemas.event import EventResponse
from api.v1.schemas.profile import OwnProfileResponse, ProfileFields


class JoinRequest(BaseModel):
    """Schema for joining an event."""

    event_code: str = Field(..., min_length=1, max_length=32)
    profile: ProfileFields


class JoinResponse(BaseModel):
    """Schema for a newly joined session."""

    event_id: UUID
    session_id: str
    event: EventResponse
    profile: OwnProfileResponse


class JoinDetailResponse(BaseModel):
    data: JoinResponse


class SessionStatusResponse(BaseModel):
    """Schema for session validation result."""

    event_id: UUID
    session_id: str
    is_valid: bool
    reason: str | None = None
    should_clear: bool = False


class SessionStatusDetailResponse(BaseModel):
    data: SessionStatusResponse
