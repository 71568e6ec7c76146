from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class UnauthorizedError(AppError):
    """Actor lacks the required role or does not own the resource."""

    def __init__(self, message: str = "Not authorized to perform this action") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    """Referenced request or balance does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class AlreadyProcessedError(AppError):
    """The request was already approved, rejected or cancelled."""

    def __init__(self, message: str = "Request already processed") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class InvalidStateError(AppError):
    """Operation is not valid for the request's current status."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class InsufficientBalanceError(InvalidStateError):
    """Approval would push used days above the allocation."""


class InvalidRangeError(AppError):
    """End date falls before start date."""

    def __init__(self, message: str = "End date must not be before start date") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidInputError(AppError):
    """A required field is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class StorageError(AppError):
    """The persistence layer failed; the transaction was rolled back."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
