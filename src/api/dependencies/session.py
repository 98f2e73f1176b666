"""Anonymous session dependencies for FastAPI."""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header

from core.exceptions import SessionRequiredError


@dataclass(frozen=True)
class SessionContext:
    """Event and anonymous session a request acts as."""

    event_id: UUID
    session_id: str


async def get_current_session(
    x_event_id: Annotated[str | None, Header()] = None,
    x_session_id: Annotated[str | None, Header()] = None,
) -> SessionContext:
    """
    Dependency resolving the caller's session from headers.

    Raises:
        SessionRequiredError: If either header is missing or the event id is malformed
    """
    if not x_event_id or not x_session_id:
        raise SessionRequiredError()

    try:
        event_id = UUID(x_event_id)
    except ValueError:
        raise SessionRequiredError("X-Event-Id must be a valid UUID") from None

    session_id = x_session_id.strip()
    if not session_id or len(session_id) > 64:
        raise SessionRequiredError("X-Session-Id is invalid")

    return SessionContext(event_id=event_id, session_id=session_id)


# Type alias for convenience in route handlers
CurrentSession = Annotated[SessionContext, Depends(get_current_session)]
