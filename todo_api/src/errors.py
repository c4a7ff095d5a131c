"""
Application error taxonomy.

Every failure a handler can signal is an ``APIError`` subclass carrying the
HTTP status, a stable machine-readable code and a human message. The
exception handlers registered in ``main.py`` turn them into the common
error envelope ``{"error": true, "code", "message"}``.

Store-layer (asyncpg) failures are translated here as well so that handlers
never leak driver messages to clients.
"""

from enum import Enum
from typing import Any, Dict, Optional

import asyncpg
import structlog
from fastapi import status

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    """Stable error codes returned in the ``code`` field of error responses."""

    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_REQUEST_BODY = "INVALID_REQUEST_BODY"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the error envelope body."""
        body: Dict[str, Any] = {
            "error": True,
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.INVALID_REQUEST_BODY
    default_message = "Invalid request body"


class Unauthorized(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class TokenExpired(Unauthorized):
    code = ErrorCode.TOKEN_EXPIRED
    default_message = "Token expired"


class TokenInvalid(Unauthorized):
    code = ErrorCode.TOKEN_INVALID
    default_message = "Token invalid"


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN
    default_message = "You are not permitted to perform this action"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class Conflict(APIError):
    status_code = status.HTTP_409_CONFLICT
    code = ErrorCode.CONFLICT
    default_message = "Resource already exists"


class InternalError(APIError):
    pass


# ============================================================================
# STORE ERROR TRANSLATION
# ============================================================================

# SQLSTATE-based translation; messages are what clients get to see.
_STORE_ERRORS = (
    (asyncpg.UniqueViolationError, Conflict, "Unique constraint failed on the request fields"),
    (asyncpg.ForeignKeyViolationError, ValidationError, "Foreign key constraint failed: referenced record does not exist"),
    (asyncpg.NotNullViolationError, ValidationError, "Null constraint violation: a required field is missing"),
    (asyncpg.CheckViolationError, ValidationError, "Check constraint failed on the request fields"),
    (asyncpg.InvalidTextRepresentationError, ValidationError, "Invalid value provided for a field"),
    (asyncpg.NumericValueOutOfRangeError, ValidationError, "Numeric value out of range"),
    (asyncpg.StringDataRightTruncationError, ValidationError, "Value too long for field"),
)


def translate_store_error(exc: asyncpg.PostgresError) -> APIError:
    """
    Map an asyncpg error onto a user-facing APIError.

    Args:
        exc: Error raised by the database driver

    Returns:
        APIError to send back to the client
    """
    for error_type, api_error, message in _STORE_ERRORS:
        if isinstance(exc, error_type):
            logger.warning(
                "store_error_translated",
                sqlstate=getattr(exc, "sqlstate", None),
                error=str(exc)
            )
            return api_error(message)

    logger.error("store_error", sqlstate=getattr(exc, "sqlstate", None), error=str(exc))
    return InternalError("Database error", code=ErrorCode.DATABASE_ERROR)
