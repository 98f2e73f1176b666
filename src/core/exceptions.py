"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Session errors (401)
    SESSION_REQUIRED = "SESSION_REQUIRED"

    # Authorization errors (403)
    PROFILE_HIDDEN = "PROFILE_HIDDEN"
    NOT_MATCHED = "NOT_MATCHED"
    SESSION_KICKED = "SESSION_KICKED"

    # Not found errors (404)
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_LIKE = "INVALID_LIKE"
    EVENT_NOT_ACTIVE = "EVENT_NOT_ACTIVE"

    # Conflict errors (409)
    DUPLICATE_PROFILE = "DUPLICATE_PROFILE"

    # Deferred writes (202)
    OPERATION_QUEUED = "OPERATION_QUEUED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500/503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORE_ERROR = "STORE_ERROR"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class StoreErrorKind(StrEnum):
    """Structured failure kinds reported by the store adapter boundary."""

    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"


TRANSIENT_STORE_ERRORS = frozenset(
    {StoreErrorKind.UNAVAILABLE, StoreErrorKind.TIMEOUT, StoreErrorKind.INTERNAL}
)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class StoreError(AppException):
    """A remote store operation failed.

    ``kind`` decides the retry policy: transient kinds are retried and may be
    queued for offline replay, every other kind is surfaced immediately.
    """

    def __init__(
        self,
        kind: StoreErrorKind,
        message: str = "Remote store operation failed",
        details: Any | None = None,
    ) -> None:
        self.kind = kind
        transient = kind in TRANSIENT_STORE_ERRORS
        super().__init__(
            error_code=ErrorCode.STORE_UNAVAILABLE if transient else ErrorCode.STORE_ERROR,
            message=message,
            status_code=503 if transient else 500,
            details=details,
        )

    @property
    def is_transient(self) -> bool:
        """Whether retrying the operation could succeed."""
        return self.kind in TRANSIENT_STORE_ERRORS


class ConnectivityError(StoreError):
    """The network or the remote store is unreachable."""

    def __init__(self, message: str = "No network connectivity") -> None:
        super().__init__(kind=StoreErrorKind.UNAVAILABLE, message=message)


class OperationQueuedError(AppException):
    """A write could not reach the store and was queued for offline replay."""

    def __init__(self, operation: str, queued_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.OPERATION_QUEUED,
            message=f"Operation queued for offline processing: {operation}",
            status_code=202,
            details={"operation": operation, "queued_id": queued_id},
        )


class SessionRequiredError(AppException):
    """Request carries no anonymous session."""

    def __init__(self, message: str = "X-Event-Id and X-Session-Id headers are required") -> None:
        super().__init__(
            error_code=ErrorCode.SESSION_REQUIRED,
            message=message,
            status_code=401,
        )


class EventNotFoundError(AppException):
    """Event not found."""

    def __init__(self, event_ref: str) -> None:
        super().__init__(
            error_code=ErrorCode.EVENT_NOT_FOUND,
            message=f"Event not found: {event_ref}",
            status_code=404,
            details={"event": event_ref},
        )


class EventNotActiveError(AppException):
    """Event has not started yet or has already expired."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.EVENT_NOT_ACTIVE,
            message="This event is not currently active",
            status_code=400,
            details={"event_id": event_id},
        )


class ProfileNotFoundError(AppException):
    """Profile not found for a session or id."""

    def __init__(self, profile_ref: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            message=f"Profile not found: {profile_ref}",
            status_code=404,
            details={"profile": profile_ref},
        )


class DuplicateProfileError(AppException):
    """A profile already exists for this session in this event."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_PROFILE,
            message="A profile already exists for this session",
            status_code=409,
            details={"session_id": session_id},
        )


class ProfileHiddenError(AppException):
    """One of the profiles involved is not visible."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_HIDDEN,
            message="Both profiles must be visible to like someone",
            status_code=403,
        )


class InvalidLikeError(AppException):
    """The like request is malformed (e.g. liking yourself)."""

    def __init__(self, message: str = "You cannot like your own profile") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_LIKE,
            message=message,
            status_code=400,
        )


class NotMatchedError(AppException):
    """Messaging requires a mutual like between both profiles."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_MATCHED,
            message="You can only message people you have matched with",
            status_code=403,
        )


class SessionKickedError(AppException):
    """The session was removed from the event by an organizer."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.SESSION_KICKED,
            message="You have been removed from this event",
            status_code=403,
            details={"event_id": event_id},
        )


class ValidationError(AppException):
    """Domain-level validation failure."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details=details,
        )
