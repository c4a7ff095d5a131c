"""FastAPI middleware components.

This package contains the authentication dependencies and the request
logging/metrics middleware.
"""

from todo_api.src.middleware.auth import get_current_user, get_token_from_header
from todo_api.src.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "get_current_user",
    "get_token_from_header",
    "RequestLoggingMiddleware",
]
