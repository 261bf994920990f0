"""
Error types and the JSON error responses the API renders for them.

Every error body has the shape {"error": "<message>"}.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Process configuration is unusable (e.g. no signing secret)."""


class InvalidTokenError(Exception):
    """Bearer token failed signature, payload or expiry checks."""


class BookshelfError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(BookshelfError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookshelfError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(BookshelfError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookshelfError):
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(BookshelfError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def setup_exception_handlers(app) -> None:
    """Register the handlers that turn exceptions into {"error": ...} bodies."""

    @app.exception_handler(BookshelfError)
    async def bookshelf_error_handler(request: Request, exc: BookshelfError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return error_response("Route not found", exc.status_code)
        return error_response(str(exc.detail), exc.status_code, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return error_response("Invalid request", status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
