"""
User router: registration, login, token refresh and account management.

Provides REST API endpoints for:
- Registration (public) returning an access/refresh token pair
- Login by email and password (public)
- Token refresh (public, requires a refresh token)
- Listing and reading users
- Deleting a user account
"""

import structlog
from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status

from todo_api.src.dependencies import get_auth_service, get_list_params, get_user_repository
from todo_api.src.errors import NotFound
from todo_api.src.models.auth import UserResponse
from todo_api.src.models.common import ErrorResponse, envelope
from todo_api.src.repositories.user_repo import UserRepository
from todo_api.src.services.auth_service import AuthService
from todo_api.src.services.crud import (
    fetch_page, get_or_404, list_query, validate_or_raise
)
from todo_api.src.services.validation import rules

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)

USER_FILTERS = ("username", "email", "first_name", "last_name")
USER_SORTS = ("id", "username", "email", "created_at")

REGISTER_SCHEMA = rules({
    "username": "string|required",
    "email": "string|required",
    "first_name": "string|required",
    "last_name": "string|required",
    "password": "string|required",
})

LOGIN_SCHEMA = rules({
    "email": "string|required",
    "password": "string|required",
})

REFRESH_SCHEMA = rules({
    "refreshToken": "string|required",
})


def _session_envelope(session, message: str) -> Dict[str, Any]:
    user, access_token, refresh_token = session
    return envelope(
        UserResponse.from_db(user),
        message,
        accessToken=access_token,
        refreshToken=refresh_token
    )


# ============================================================================
# AUTHENTICATION ENDPOINTS
# ============================================================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    responses={409: {"model": ErrorResponse, "description": "User already exists"}}
)
async def register_user(
    body: Optional[Dict[str, Any]] = Body(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """
    Create a user account.

    **Authentication:** Not required (public endpoint)

    **Request Body:** username, email, first_name, last_name, password

    Returns the created user with an access token and a refresh token.
    """
    values = validate_or_raise(REGISTER_SCHEMA, body)
    session = await auth_service.register(values)
    return _session_envelope(session, "User registered successfully")


@router.post("/login", summary="User Login")
async def login_user(
    body: Optional[Dict[str, Any]] = Body(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """
    Authenticate by email and password.

    **Error Responses:**
    - 404: No user with this email
    - 401: Wrong password
    """
    values = validate_or_raise(LOGIN_SCHEMA, body)
    session = await auth_service.login(values["email"], values["password"])
    return _session_envelope(session, "User logged in successfully")


@router.post("/refresh", summary="Refresh Tokens")
async def refresh_tokens(
    body: Optional[Dict[str, Any]] = Body(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Exchange a refresh token for a new access/refresh token pair."""
    values = validate_or_raise(REFRESH_SCHEMA, body)
    session = await auth_service.refresh(values["refreshToken"])
    return _session_envelope(session, "Tokens refreshed successfully")


# ============================================================================
# USER MANAGEMENT ENDPOINTS
# ============================================================================


@router.get("", summary="List Users")
async def list_users(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    user_repo: UserRepository = Depends(get_user_repository)
) -> Dict[str, Any]:
    """
    List users.

    Query: ``page``, ``limit``, ``sort`` (repeatable ``field:order``).
    Body (optional): equality filters on username, email, first_name, last_name.
    """
    query = list_query(USER_FILTERS, USER_SORTS, body, params)
    users, pagination = await fetch_page(user_repo, query)
    return envelope(
        [UserResponse.from_db(user) for user in users],
        "Users fetched successfully",
        pagination=pagination
    )


@router.get("/{user_id}", summary="Get User")
async def get_user(
    user_id: UUID,
    user_repo: UserRepository = Depends(get_user_repository)
) -> Dict[str, Any]:
    user = await get_or_404(user_repo, user_id, "user")
    return envelope(UserResponse.from_db(user), f"User with {user_id} retrieved successfully")


@router.delete("/{user_id}", summary="Delete User")
async def delete_user(
    user_id: UUID,
    user_repo: UserRepository = Depends(get_user_repository)
) -> Dict[str, Any]:
    """Delete a user account."""
    deleted = await user_repo.delete(user_id)
    if deleted is None:
        raise NotFound("User not found")

    logger.info("user_deleted", user_id=str(user_id))
    return envelope(UserResponse.from_db(deleted), "User deleted successfully")
