"""
Handler helpers shared by every resource router.

They encode the common request flows:

- update: reject empty body -> project onto the patch model -> reject if no
  allowed field survives -> lookup -> ownership check -> patch
- delete: lookup -> ownership check -> delete
- list: build the query -> fetch page and count -> pagination block
"""

from typing import Any, Collection, Dict, List, Mapping, Optional, Tuple, Type
from uuid import UUID

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from todo_api.src.config import get_settings
from todo_api.src.errors import NotFound, ValidationError
from todo_api.src.models.common import Pagination
from todo_api.src.repositories.base import ResourceRepository
from todo_api.src.services.ownership import ensure_owner
from todo_api.src.services.query_builder import ListQuery, build_query, paginate
from todo_api.src.services.validation import Schema, validate

logger = structlog.get_logger(__name__)


def validate_or_raise(schema: Schema, payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Validate a create payload.

    Returns:
        Coerced values of the schema fields

    Raises:
        ValidationError: With per-field details when any rule fails
    """
    result = validate(schema, payload if isinstance(payload, Mapping) else None)
    if not result.ok:
        raise ValidationError("Invalid request body", details=result.error)
    return result.values


def apply_patch(patch_model: Type[BaseModel], body: Any) -> Dict[str, Any]:
    """
    Project an update body onto a patch model.

    Unknown fields are ignored; null values count as absent.

    Args:
        patch_model: Pydantic model with optional updatable fields
        body: Raw JSON body

    Returns:
        Column -> value for the fields to change

    Raises:
        ValidationError: Empty body, wrong field types, or no updatable field
    """
    if not body or not isinstance(body, Mapping):
        raise ValidationError("Request body cannot be empty")

    try:
        patch = patch_model.model_validate(dict(body))
    except PydanticValidationError as e:
        details = {
            ".".join(str(part) for part in error["loc"]): {
                "rule": error["type"],
                "message": error["msg"],
            }
            for error in e.errors()
        }
        raise ValidationError("Invalid request body", details=details)

    values = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not values:
        raise ValidationError("No valid fields to update")

    return values


async def get_or_404(repo: ResourceRepository, resource_id: UUID, label: str):
    """Fetch a row by id or raise NotFound."""
    resource = await repo.get_by_id(resource_id)
    if resource is None:
        raise NotFound(f"{label.capitalize()} not found")
    return resource


async def update_owned(
    repo: ResourceRepository,
    resource_id: UUID,
    user_id: UUID,
    values: Dict[str, Any],
    label: str
):
    """
    Apply a patch to a row the caller owns.

    Raises:
        NotFound: No such row (also when it vanished before the update)
        Forbidden: Row belongs to someone else
    """
    ensure_owner(await repo.get_by_id(resource_id), user_id, label)

    updated = await repo.update(resource_id, values)
    if updated is None:
        raise NotFound(f"{label.capitalize()} not found")

    return updated


async def delete_owned(repo: ResourceRepository, resource_id: UUID, user_id: UUID, label: str):
    """
    Delete a row the caller owns.

    Returns:
        The deleted row
    """
    ensure_owner(await repo.get_by_id(resource_id), user_id, label)

    deleted = await repo.delete(resource_id)
    if deleted is None:
        raise NotFound(f"{label.capitalize()} not found")

    return deleted


def list_query(
    filter_whitelist: Collection[str],
    sort_whitelist: Collection[str],
    body: Any,
    params: Mapping[str, Any]
) -> ListQuery:
    """Build a ListQuery using the configured pagination limits."""
    settings = get_settings()
    return build_query(
        filter_whitelist,
        sort_whitelist,
        body if isinstance(body, Mapping) else None,
        params,
        default_limit=settings.pagination_default_limit,
        max_limit=settings.pagination_max_limit,
    )


async def fetch_page(repo: ResourceRepository, query: ListQuery) -> Tuple[List[Any], Pagination]:
    """Run a list query and compute its pagination block."""
    rows, total = await repo.list(query)
    logger.debug("page_fetched", table=repo.table, total=total, page=query.page, take=query.take)
    return rows, paginate(total, query)
