"""Like and block API routes."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.session import CurrentSession
from api.v1.dependencies import get_directory_service, get_like_service
from api.v1.schemas.common import QUEUED_RESPONSE
from api.v1.schemas.like import (
    BlockCreate,
    BlockDetailResponse,
    BlockResponse,
    LikeCreate,
    LikeResponse,
    LikeResultResponse,
    MatchListResponse,
)
from api.v1.schemas.profile import ProfileResponse
from core.rate_limit import limiter
from domain.services.directory_service import DirectoryService
from domain.services.like_service import LikeService

router = APIRouter(prefix="/likes", tags=["likes"])
blocks_router = APIRouter(prefix="/blocks", tags=["blocks"])


@router.post(
    "",
    response_model=LikeResultResponse,
    summary="Like an attendee",
    responses={
        200: {"description": "Like recorded; `is_match` reports a new match"},
        403: {"description": "One of the profiles is hidden"},
        404: {"description": "Profile not found"},
        **QUEUED_RESPONSE,
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def create_like(
    request: Request,
    body: LikeCreate,
    session: CurrentSession,
    service: LikeService = Depends(get_like_service),
) -> LikeResultResponse:
    """Like another attendee. Liking the same attendee twice is a no-op."""
    result = await service.like(session.event_id, session.session_id, body.liked_session_id)
    return LikeResultResponse(
        data=LikeResponse.model_validate(result.like),
        state=result.state.value,
        created=result.created,
        is_match=result.is_match,
    )


@router.get(
    "/matches",
    response_model=MatchListResponse,
    summary="List matches",
)
async def list_matches(
    session: CurrentSession,
    service: DirectoryService = Depends(get_directory_service),
    likes: LikeService = Depends(get_like_service),
) -> MatchListResponse:
    """Profiles the caller has matched with in this event."""
    await likes.reconcile(session.event_id, session.session_id)
    profiles = await service.list_matches(session.event_id, session.session_id)
    return MatchListResponse(data=[ProfileResponse.model_validate(p) for p in profiles])


@blocks_router.post(
    "",
    response_model=BlockDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block an attendee",
    responses=QUEUED_RESPONSE,
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def block_session(
    request: Request,
    body: BlockCreate,
    session: CurrentSession,
    service: DirectoryService = Depends(get_directory_service),
) -> BlockDetailResponse:
    """Hide the caller and the blocked attendee from each other."""
    block = await service.block(session.event_id, session.session_id, body.blocked_session_id)
    return BlockDetailResponse(data=BlockResponse.model_validate(block))
