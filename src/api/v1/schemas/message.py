"""Pydantic schemas for Message API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a message."""

    to_profile_id: UUID
    content: str = Field(..., min_length=1, max_length=1000)


class MessageResponse(BaseModel):
    """Schema for a chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_profile_id: UUID
    to_profile_id: UUID
    content: str
    seen: bool
    seen_at: datetime | None = None
    created_at: datetime


class MessageDetailResponse(BaseModel):
    data: MessageResponse


class ConversationResponse(BaseModel):
    """Schema for a conversation, oldest message first."""

    data: list[MessageResponse]


class SeenResponse(BaseModel):
    """Schema for mark-seen result."""

    marked: int
