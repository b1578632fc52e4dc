import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    InterfaceError,
    DisconnectionError,
)

from app import config
from app.log import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """
    Base class for errors that map to a specific HTTP status
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"


class DuplicateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Duplicate entry"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class UpstreamError(AppError):
    """
    The book catalog failed for a reason other than "not found"
    """
    default_message = "Failed to reach the book catalog"


def _error_response(exc: Exception, status_code: int, message: str) -> JSONResponse:
    content: dict = {"error": message}

    if status_code >= 500:
        logger.exception("Request failed with %s: %s", status_code, message, exc_info=exc)
        if config.ENVIRONMENT != "production":
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    else:
        logger.info("Request rejected with %s: %s", status_code, message)

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        # loc looks like ("body", "email") or ("query", "limit")
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return ", ".join(messages) or "Validation error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(exc, exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(exc, status.HTTP_400_BAD_REQUEST, _validation_message(exc))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    if isinstance(exc, IntegrityError):
        if "foreign key" in str(exc.orig).lower():
            return _error_response(exc, status.HTTP_400_BAD_REQUEST, "Invalid reference to related resource")
        return _error_response(exc, status.HTTP_400_BAD_REQUEST, "Duplicate entry")
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return _error_response(exc, status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed")
    return _error_response(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error occurred")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
