"""Translation of driver and SQLAlchemy failures into StoreError kinds."""

from sqlalchemy import exc as sa_exc

from core.exceptions import StoreError, StoreErrorKind

# SQLSTATE class 42501 = insufficient_privilege (row-level security denials)
_PERMISSION_DENIED_SQLSTATES = frozenset({"42501"})


def _sqlstate(error: sa_exc.DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def translate_db_error(error: BaseException) -> StoreError:
    """Map a persistence failure onto the retry taxonomy."""
    if isinstance(error, StoreError):
        return error

    if isinstance(error, sa_exc.NoResultFound):
        return StoreError(StoreErrorKind.NOT_FOUND, "Document not found")

    if isinstance(error, sa_exc.IntegrityError):
        return StoreError(StoreErrorKind.CONFLICT, "Uniqueness or integrity conflict")

    if isinstance(error, sa_exc.DBAPIError):
        if error.connection_invalidated:
            return StoreError(StoreErrorKind.UNAVAILABLE, "Store connection was lost")
        if _sqlstate(error) in _PERMISSION_DENIED_SQLSTATES:
            return StoreError(StoreErrorKind.PERMISSION_DENIED, "Permission denied")
        if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError)):
            return StoreError(StoreErrorKind.UNAVAILABLE, "Store is unavailable")
        if isinstance(error, (sa_exc.ProgrammingError, sa_exc.DataError)):
            return StoreError(StoreErrorKind.INVALID, "Store rejected the request")
        return StoreError(StoreErrorKind.INTERNAL, "Store internal error")

    if isinstance(error, (sa_exc.DisconnectionError, sa_exc.TimeoutError)):
        return StoreError(StoreErrorKind.UNAVAILABLE, "Store connection pool unavailable")

    if isinstance(error, TimeoutError):
        return StoreError(StoreErrorKind.TIMEOUT, "Store operation timed out")

    if isinstance(error, (ConnectionError, OSError)):
        return StoreError(StoreErrorKind.UNAVAILABLE, "Network error talking to store")

    return StoreError(StoreErrorKind.INTERNAL, "Store internal error")


def is_store_failure(error: BaseException) -> bool:
    """Whether ``error`` originates from the store or the network under it."""
    return isinstance(error, (sa_exc.SQLAlchemyError, ConnectionError, TimeoutError, OSError))
