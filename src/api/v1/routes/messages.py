"""Message API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.session import CurrentSession
from api.v1.dependencies import get_message_service
from api.v1.schemas.common import QUEUED_RESPONSE
from api.v1.schemas.message import (
    ConversationResponse,
    MessageCreate,
    MessageDetailResponse,
    MessageResponse,
    SeenResponse,
)
from core.rate_limit import limiter
from domain.services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get(
    "/{profile_id}",
    response_model=ConversationResponse,
    summary="Get a conversation",
    responses={403: {"description": "Not matched with this profile"}},
)
async def get_conversation(
    profile_id: UUID,
    session: CurrentSession,
    service: MessageService = Depends(get_message_service),
) -> ConversationResponse:
    """Messages exchanged with a matched profile, oldest first."""
    messages = await service.get_conversation(session.event_id, session.session_id, profile_id)
    return ConversationResponse(data=[MessageResponse.model_validate(m) for m in messages])


@router.post(
    "",
    response_model=MessageDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
    responses={403: {"description": "Not matched with this profile"}, **QUEUED_RESPONSE},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def send_message(
    request: Request,
    body: MessageCreate,
    session: CurrentSession,
    service: MessageService = Depends(get_message_service),
) -> MessageDetailResponse:
    """Send a message to a matched profile."""
    message = await service.send(
        session.event_id, session.session_id, body.to_profile_id, body.content
    )
    return MessageDetailResponse(data=MessageResponse.model_validate(message))


@router.post(
    "/{profile_id}/seen",
    response_model=SeenResponse,
    summary="Mark a conversation as seen",
    responses=QUEUED_RESPONSE,
)
async def mark_seen(
    profile_id: UUID,
    session: CurrentSession,
    service: MessageService = Depends(get_message_service),
) -> SeenResponse:
    """Mark every message received from `profile_id` as seen."""
    marked = await service.mark_seen(session.event_id, session.session_id, profile_id)
    return SeenResponse(marked=marked)
