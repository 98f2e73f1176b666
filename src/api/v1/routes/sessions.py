"""Session API routes."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.session import CurrentSession
from api.v1.dependencies import get_session_service
from api.v1.schemas.event import EventResponse
from api.v1.schemas.profile import OwnProfileResponse
from api.v1.schemas.session import (
    JoinDetailResponse,
    JoinRequest,
    JoinResponse,
    SessionStatusDetailResponse,
    SessionStatusResponse,
)
from core.rate_limit import limiter
from domain.services.session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    "/join",
    response_model=JoinDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Join an event",
    responses={
        201: {"description": "Session created with its profile"},
        400: {"description": "Event has not started or has expired"},
        404: {"description": "No active event with this code"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def join_event(
    request: Request,
    body: JoinRequest,
    service: SessionService = Depends(get_session_service),
) -> JoinDetailResponse:
    """Join an event by code. The returned session id goes in `X-Session-Id`."""
    joined = await service.join(
        body.event_code,
        body.profile.model_dump(exclude_unset=True),
        persist=False,
    )
    return JoinDetailResponse(
        data=JoinResponse(
            event_id=joined.event.id,
            session_id=joined.session_id,
            event=EventResponse.model_validate(joined.event),
            profile=OwnProfileResponse.model_validate(joined.profile),
        )
    )


@router.get(
    "/current",
    response_model=SessionStatusDetailResponse,
    summary="Validate the current session",
)
async def get_current_session_status(
    session: CurrentSession,
    service: SessionService = Depends(get_session_service),
) -> SessionStatusDetailResponse:
    """Check whether the caller's session can still be resumed."""
    validation = await service.validate(session.event_id, session.session_id)
    return SessionStatusDetailResponse(
        data=SessionStatusResponse(
            event_id=session.event_id,
            session_id=session.session_id,
            is_valid=validation.is_valid,
            reason=validation.reason,
            should_clear=validation.should_clear,
        )
    )
