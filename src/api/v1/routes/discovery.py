"""Discovery API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from api.dependencies.session import CurrentSession
from api.v1.dependencies import get_directory_service
from api.v1.schemas.profile import DiscoveryProfileResponse, DiscoveryResponse
from domain.entities.profile import MAX_AGE, MIN_AGE
from domain.services.compatibility import (
    ALL_GENDERS,
    DEFAULT_AGE_MAX,
    DEFAULT_AGE_MIN,
    DiscoveryFilters,
)
from domain.services.directory_service import DirectoryService

router = APIRouter(prefix="/discovery", tags=["discovery"])


@router.get(
    "",
    response_model=DiscoveryResponse,
    summary="List compatible attendees",
    responses={404: {"description": "Session has no profile in this event"}},
)
async def discover(
    session: CurrentSession,
    age_min: Annotated[int, Query(ge=MIN_AGE, le=MAX_AGE)] = DEFAULT_AGE_MIN,
    age_max: Annotated[int, Query(ge=MIN_AGE, le=MAX_AGE)] = DEFAULT_AGE_MAX,
    gender: Annotated[str, Query(pattern=r"^(all|man|woman|non-binary)$")] = ALL_GENDERS,
    interests: Annotated[list[str] | None, Query()] = None,
    service: DirectoryService = Depends(get_directory_service),
) -> DiscoveryResponse:
    """
    Candidates are visible, mutually compatible by orientation and pass the
    age, gender and interest filters. Blocked attendees never appear.
    """
    filters = DiscoveryFilters(
        age_min=age_min,
        age_max=age_max,
        gender=gender,
        interests=tuple(interests or ()),
    )
    candidates = await service.get_candidates(session.event_id, session.session_id, filters)
    given = await service.list_likes_given(session.event_id, session.session_id)
    liked = {like.liked_session_id for like in given}

    data = [
        DiscoveryProfileResponse.model_validate(profile).model_copy(
            update={"liked": profile.session_id in liked}
        )
        for profile in candidates
    ]
    return DiscoveryResponse(data=data, total=len(data))
