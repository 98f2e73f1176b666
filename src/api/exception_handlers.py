"""Exception handlers for the FastAPI application."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.exceptions import AppException, ErrorCode, OperationQueuedError, StoreError

logger = structlog.get_logger()

# Seconds a client should wait before retrying after a transient store failure
STORE_RETRY_AFTER_S = 5


def _error_body(exc: AppException) -> dict:
    return {
        "error_code": exc.error_code.value,
        "message": exc.message,
        "details": exc.details,
    }


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(OperationQueuedError)
    async def operation_queued_handler(request: Request, exc: OperationQueuedError) -> JSONResponse:
        """A write was deferred; report it as accepted."""
        logger.info("operation_queued_response", details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(StoreError)
    async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Handle store failures that survived retries."""
        headers = None
        if exc.is_transient:
            headers = {"Retry-After": str(STORE_RETRY_AFTER_S)}
            logger.warning("store_unavailable", kind=exc.kind.value, message=exc.message)
        else:
            logger.error("store_error", kind=exc.kind.value, message=exc.message)

        body = _error_body(exc)
        body["details"] = {"kind": exc.kind.value, **(exc.details or {})}
        return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle custom application exceptions."""
        logger.warning(
            "app_exception",
            error_code=exc.error_code.value,
            message=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions from FastAPI/Starlette."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error_code": "HTTP_ERROR",
                "message": exc.detail,
                "details": None,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        logger.info("validation_error", errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content={
                "error_code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Request validation failed",
                "details": [
                    {
                        "field": ".".join(str(x) for x in error["loc"]),
                        "message": error["msg"],
                        "type": error["type"],
                    }
                    for error in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=request_id,
            exc_info=True,
        )

        message = "An unexpected error occurred"
        if not settings.is_production:
            message = str(exc)

        return JSONResponse(
            status_code=500,
            content={
                "error_code": ErrorCode.INTERNAL_ERROR.value,
                "message": message,
                "details": {"request_id": request_id},
            },
        )
