"""
Ownership checks for mutating operations.

Every owned row exposes ``owner_id``. Mutations are only applied when it
equals the authenticated user's id.
"""

from enum import Enum
from typing import Any, Optional, TypeVar
from uuid import UUID

import structlog

from todo_api.src.errors import Forbidden, NotFound

logger = structlog.get_logger(__name__)

ResourceT = TypeVar("ResourceT")


class Authorization(str, Enum):
    """Outcome of an ownership check."""
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def authorize(resource: Optional[Any], user_id: UUID) -> Authorization:
    """
    Decide whether ``user_id`` may mutate ``resource``.

    Args:
        resource: Fetched row, or None when the lookup found nothing
        user_id: Authenticated user id

    Returns:
        Authorization decision
    """
    if resource is None:
        return Authorization.NOT_FOUND
    if str(resource.owner_id) != str(user_id):
        return Authorization.FORBIDDEN
    return Authorization.ALLOWED


def ensure_owner(resource: Optional[ResourceT], user_id: UUID, label: str) -> ResourceT:
    """
    Raise unless ``user_id`` owns ``resource``.

    Args:
        resource: Fetched row or None
        user_id: Authenticated user id
        label: Human name of the resource kind, e.g. "todo"

    Returns:
        The resource, when allowed

    Raises:
        NotFound: Resource does not exist
        Forbidden: Resource belongs to another user
    """
    decision = authorize(resource, user_id)

    if decision is Authorization.NOT_FOUND:
        raise NotFound(f"{label.capitalize()} not found")

    if decision is Authorization.FORBIDDEN:
        logger.warning(
            "ownership_denied",
            resource=label,
            resource_id=str(getattr(resource, "id", None)),
            user_id=str(user_id)
        )
        raise Forbidden(f"You are not permitted to modify this {label}")

    return resource
