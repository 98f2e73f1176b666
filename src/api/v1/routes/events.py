"""Event API routes."""

from fastapi import APIRouter, Depends

from api.v1.dependencies import get_directory_service
from api.v1.schemas.event import EventDetailResponse, EventResponse
from domain.services.directory_service import DirectoryService

router = APIRouter(prefix="/events", tags=["events"])


@router.get(
    "/{event_code}",
    response_model=EventDetailResponse,
    summary="Look up an event by join code",
    responses={404: {"description": "No active event with this code"}},
)
async def get_event_by_code(
    event_code: str,
    service: DirectoryService = Depends(get_directory_service),
) -> EventDetailResponse:
    """Resolve a join code (case-insensitive) to its event."""
    event = await service.find_event_by_code(event_code)
    return EventDetailResponse(data=EventResponse.model_validate(event))
