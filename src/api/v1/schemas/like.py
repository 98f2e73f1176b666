"""Pydantic schemas for Like and Block API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.profile import ProfileResponse


class LikeCreate(BaseModel):
    """Schema for liking another attendee."""

    liked_session_id: str = Field(..., min_length=1, max_length=64)


class LikeResponse(BaseModel):
    """Schema for Like response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    liker_session_id: str
    liked_session_id: str
    is_mutual: bool
    created_at: datetime


class LikeResultResponse(BaseModel):
    """Schema for the outcome of a like."""

    data: LikeResponse
    state: str
    created: bool
    is_match: bool


class MatchListResponse(BaseModel):
    """Schema for the caller's matches."""

    data: list[ProfileResponse]


class BlockCreate(BaseModel):
    """Schema for blocking another attendee."""

    blocked_session_id: str = Field(..., min_length=1, max_length=64)


class BlockResponse(BaseModel):
    """Schema for Block response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    blocker_session_id: str
    blocked_session_id: str
    created_at: datetime


class BlockDetailResponse(BaseModel):
    data: BlockResponse
