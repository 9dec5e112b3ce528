"""
Error taxonomy shared by every route, and the handlers that render it.

Every failure leaves the API as ``{"error": <message>, "code": <code>}``.
Messages are fixed per error class unless a handler supplies a more specific,
user-safe one; internal details only ever reach the log.
"""
import logging
from typing import Optional, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


# PUBLIC_INTERFACE
class APIError(Exception):
    """Base for every error the API reports on purpose."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal"
    message = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"
    message = "Invalid request"


class DuplicateEmail(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "duplicate_email"
    message = "User already exists"


class AuthenticationError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_failed"
    message = "Authentication failed"
    headers = BEARER_CHALLENGE


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class AuthRequired(AuthenticationError):
    code = "auth_required"
    message = "Authentication required"


class InvalidToken(AuthenticationError):
    code = "invalid_token"
    message = "Invalid token"


class TokenExpired(AuthenticationError):
    code = "token_expired"
    message = "Token expired"


class UserNotFound(AuthenticationError):
    code = "user_not_found"
    message = "User not found"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Not found"


class AnalysisFailed(APIError):
    code = "analysis_failed"
    message = "Analysis failed"


class Internal(APIError):
    pass


def _envelope(status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code}, headers=headers)


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return InvalidInput.message
    first = errors[0]
    # loc is ("body", "content") / ("query", "pageSize"); the first element only names the source
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    msg = first.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


_HTTP_CODES = {
    404: "not_found",
    405: "method_not_allowed",
}


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Attach the envelope renderers to the application."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.message)
        return _envelope(exc.status_code, exc.code, exc.message, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _envelope(status.HTTP_400_BAD_REQUEST, InvalidInput.code, _describe_validation(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_CODES.get(exc.status_code, "http_error")
        return _envelope(exc.status_code, code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return _envelope(Internal.status_code, Internal.code, Internal.message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _envelope(Internal.status_code, Internal.code, Internal.message)
