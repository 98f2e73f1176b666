"""Pydantic schemas for Profile API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

INTERESTED_IN_PATTERN = r"^(men|women|non-binary|everyone|everybody)$"
GENDER_PATTERN = r"^(man|woman|non-binary)$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class ProfileFields(BaseModel):
    """Fields an attendee provides when joining."""

    first_name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=18, le=100)
    gender_identity: str = Field(..., pattern=GENDER_PATTERN)
    interested_in: str | None = Field(None, pattern=INTERESTED_IN_PATTERN)
    interests: list[str] = Field(default_factory=list, max_length=3)
    about_me: str | None = Field(None, max_length=500)
    height_cm: int | None = Field(None, ge=100, le=250)
    profile_photo_url: str | None = Field(None, max_length=500)
    profile_color: str | None = Field(None, pattern=COLOR_PATTERN)


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's profile."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    age: int | None = Field(None, ge=18, le=100)
    gender_identity: str | None = Field(None, pattern=GENDER_PATTERN)
    interested_in: str | None = Field(None, pattern=INTERESTED_IN_PATTERN)
    interests: list[str] | None = Field(None, max_length=3)
    about_me: str | None = Field(None, max_length=500)
    height_cm: int | None = Field(None, ge=100, le=250)
    profile_photo_url: str | None = Field(None, max_length=500)
    profile_color: str | None = Field(None, pattern=COLOR_PATTERN)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class VisibilityUpdate(BaseModel):
    """Schema for showing or hiding the caller's profile."""

    is_visible: bool


class ProfileResponse(BaseModel):
    """Schema for Profile response (other attendees see this)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    age: int
    gender_identity: str
    interested_in: str | None = None
    interests: list[str] = []
    about_me: str | None = None
    height_cm: int | None = None
    profile_photo_url: str | None = None
    profile_color: str | None = None
    created_at: datetime


class OwnProfileResponse(ProfileResponse):
    """Schema for the caller's own profile."""

    event_id: UUID
    session_id: str
    is_visible: bool
    updated_at: datetime


class OwnProfileDetailResponse(BaseModel):
    """Schema for the caller's profile."""

    data: OwnProfileResponse


class ProfileListResponse(BaseModel):
    """Schema for list of Profiles."""

    data: list[ProfileResponse]


class DiscoveryProfileResponse(ProfileResponse):
    """Candidate profile with the caller's like state."""

    session_id: str
    liked: bool = False


class DiscoveryResponse(BaseModel):
    """Schema for the discovery pool."""

    data: list[DiscoveryProfileResponse]
    total: int
