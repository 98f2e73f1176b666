"""Profile API routes."""

from fastapi import APIRouter, Depends

from api.dependencies.session import CurrentSession
from api.v1.dependencies import get_directory_service
from api.v1.schemas.common import QUEUED_RESPONSE
from api.v1.schemas.profile import (
    OwnProfileDetailResponse,
    OwnProfileResponse,
    ProfileUpdate,
    VisibilityUpdate,
)
from core.exceptions import ProfileNotFoundError
from domain.services.directory_service import DirectoryService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=OwnProfileDetailResponse,
    summary="Get own profile",
    responses={404: {"description": "Session has no profile in this event"}},
)
async def get_my_profile(
    session: CurrentSession,
    service: DirectoryService = Depends(get_directory_service),
) -> OwnProfileDetailResponse:
    """Get the caller's profile in the current event."""
    profile = await service.get_profile_for_session(session.event_id, session.session_id)
    if profile is None:
        raise ProfileNotFoundError(session.session_id)
    return OwnProfileDetailResponse(data=OwnProfileResponse.model_validate(profile))


@router.patch(
    "/me",
    response_model=OwnProfileDetailResponse,
    summary="Update own profile",
    responses=QUEUED_RESPONSE,
)
async def update_my_profile(
    body: ProfileUpdate,
    session: CurrentSession,
    service: DirectoryService = Depends(get_directory_service),
) -> OwnProfileDetailResponse:
    """Update fields of the caller's profile. Only provided fields change."""
    profile = await service.update_profile(session.event_id, session.session_id, body.changes())
    return OwnProfileDetailResponse(data=OwnProfileResponse.model_validate(profile))


@router.put(
    "/me/visibility",
    response_model=OwnProfileDetailResponse,
    summary="Show or hide own profile",
    responses=QUEUED_RESPONSE,
)
async def set_my_visibility(
    body: VisibilityUpdate,
    session: CurrentSession,
    service: DirectoryService = Depends(get_directory_service),
) -> OwnProfileDetailResponse:
    """Hidden profiles disappear from discovery and cannot be liked."""
    profile = await service.set_visibility(session.event_id, session.session_id, body.is_visible)
    return OwnProfileDetailResponse(data=OwnProfileResponse.model_validate(profile))
