"""Error types raised by the catalog services and their HTTP translation."""
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from catalog.core.config import settings
from catalog.core.logging import get_logger

logger = get_logger(__name__)


class APIError(Exception):
    """ Base class for all errors reported to API callers. """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code:
            self.code = code


class ValidationError(APIError):
    """ Raised when input is malformed or breaks a category invariant. """
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class CategorySelfParentError(ValidationError):
    """ Raised when a category is made its own parent. """
    code = "CATEGORY_SELF_PARENT"


class CategoryCycleError(ValidationError):
    """ Raised when a new parent would close a loop in the category tree. """
    code = "CATEGORY_CYCLE"


class CategoryNotEmptyError(ValidationError):
    """ Raised when deleting a category that still has products or children. """
    code = "CATEGORY_NOT_EMPTY"


class UnauthenticatedError(APIError):
    """ Raised when no valid session token was presented. """
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"


class ForbiddenError(APIError):
    """ Raised when the session's role is too low for the operation. """
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(APIError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


def error_body(message: str, code: str, details: Any = None, stack: Optional[str] = None) -> dict:
    """Build the error envelope shared by every failing response"""
    error = {
        "message": message,
        "code": code,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if stack is not None:
        error["stack"] = stack
    return {"success": False, "error": error}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.message, exc.code, exc.details)),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            error_body("Validation error", ValidationError.code, exc.errors())
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    stack = None
    if settings.DEBUG:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("An unexpected error occurred", APIError.code, stack=stack),
    )


def register_exception_handlers(app) -> None:
    """Attach the error envelope handlers to a FastAPI application"""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
