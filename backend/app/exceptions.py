import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    success: bool = False
    message: str
    error: str


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed, missing or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientBalanceError(ValidationError):
    """A leave request exceeds the employee's remaining allocation."""

    def __init__(self, remaining: int) -> None:
        self.remaining = remaining
        super().__init__(f"Insufficient leave balance. You have {remaining} days remaining.")


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Role or team-scope mismatch."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    """Case, user or team absent."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(AppError):
    """Transition attempted from the wrong status."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    """Duplicate unique key."""

    status_code = status.HTTP_409_CONFLICT


class InternalError(AppError):
    """Unexpected persistence or runtime failure."""


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, type(exc).__name__)
    else:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=exc.message,
            error=type(exc).__name__,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'Invalid request')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            message=message,
            error="ValidationError",
        ).model_dump(),
    )


_HTTP_ERROR_NAMES = {
    status.HTTP_401_UNAUTHORIZED: AuthenticationError.__name__,
    status.HTTP_403_FORBIDDEN: AuthorizationError.__name__,
    status.HTTP_404_NOT_FOUND: NotFoundError.__name__,
}


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=message,
            error=_HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError"),
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            message="Internal server error",
            error=InternalError.__name__,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
