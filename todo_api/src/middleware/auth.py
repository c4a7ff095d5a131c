"""
JWT authentication dependencies for FastAPI.

Provides:
- Bearer token extraction from the Authorization header
- Resolution of the token to the current user

Failures raise the application's ``Unauthorized`` family of errors, which the
exception handlers render as 401 envelopes.
"""

import structlog
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from todo_api.src.dependencies import get_auth_service
from todo_api.src.errors import Unauthorized
from todo_api.src.models.auth import CurrentUser
from todo_api.src.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

# HTTP Bearer token scheme for dependency injection
security = HTTPBearer(auto_error=False)


async def get_token_from_header(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        JWT token string

    Raises:
        Unauthorized: If the header is missing or not a bearer token
    """
    if not credentials or not credentials.credentials:
        logger.warning("auth_missing_credentials")
        raise Unauthorized("Not authorized, no token")

    if credentials.scheme.lower() != "bearer":
        logger.warning("auth_invalid_scheme", scheme=credentials.scheme)
        raise Unauthorized("Invalid authentication scheme. Expected Bearer token")

    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token_from_header),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Validates the access token and loads the user it names.

    Args:
        token: JWT token
        auth_service: Authentication service

    Returns:
        Current authenticated user

    Raises:
        TokenExpired: If the token has expired
        TokenInvalid: If the token cannot be trusted
        Unauthorized: If the user no longer exists

    Example:
        @router.post("/todos")
        async def create_todo(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    user = await auth_service.verify_access_token(token)

    if not user:
        logger.warning("auth_user_not_found")
        raise Unauthorized("Not authorized, user not found")

    logger.debug("user_authenticated", user_id=str(user.id), username=user.username)

    return CurrentUser(id=user.id, username=user.username, email=user.email)
