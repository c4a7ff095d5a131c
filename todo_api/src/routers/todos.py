"""
Todo router.

Every endpoint requires authentication. Todos are always listed for the
calling user only; updates and deletes are restricted to the owner.
"""

from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status

from todo_api.src.dependencies import get_list_params, get_todo_repository
from todo_api.src.middleware.auth import get_current_user
from todo_api.src.models.auth import CurrentUser
from todo_api.src.models.common import ErrorResponse, envelope
from todo_api.src.models.todo import TodoPatch
from todo_api.src.repositories.todo_repo import TodoRepository
from todo_api.src.services.crud import (
    apply_patch, delete_owned, fetch_page, get_or_404, list_query, update_owned,
    validate_or_raise
)
from todo_api.src.services.validation import rules

router = APIRouter(
    prefix="/todos",
    tags=["Todos"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)

TODO_FILTERS = ("name", "description", "completed", "created_at", "updated_at")
TODO_SORTS = ("id", "name", "created_at", "updated_at")

TODO_SCHEMA = rules({
    "name": "string|required",
    "description": "string|required",
    "completed": "boolean",
})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Todo")
async def create_todo(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    todo_repo: TodoRepository = Depends(get_todo_repository)
) -> Dict[str, Any]:
    """Create a todo owned by the caller. ``completed`` takes the store default when omitted."""
    values = validate_or_raise(TODO_SCHEMA, body)
    todo = await todo_repo.create({**values, "user_id": current_user.id})
    return envelope(todo, "Todo created successfully")


@router.post("/get", summary="List Todos")
async def list_todos(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    current_user: CurrentUser = Depends(get_current_user),
    todo_repo: TodoRepository = Depends(get_todo_repository)
) -> Dict[str, Any]:
    """List the caller's todos with optional filters, sorting and pagination."""
    query = list_query(TODO_FILTERS, TODO_SORTS, body, params).with_filter("user_id", current_user.id)
    todos, pagination = await fetch_page(todo_repo, query)
    return envelope(todos, "Todos fetched successfully", pagination=pagination)


@router.get("/{todo_id}", summary="Get Todo")
async def get_todo(
    todo_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    todo_repo: TodoRepository = Depends(get_todo_repository)
) -> Dict[str, Any]:
    todo = await get_or_404(todo_repo, todo_id, "todo")
    return envelope(todo, f"Todo with {todo_id} fetched successfully")


@router.put("/{todo_id}", summary="Update Todo")
async def update_todo(
    todo_id: UUID,
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    todo_repo: TodoRepository = Depends(get_todo_repository)
) -> Dict[str, Any]:
    """Patch name, description or completed of a todo the caller owns."""
    values = apply_patch(TodoPatch, body)
    todo = await update_owned(todo_repo, todo_id, current_user.id, values, "todo")
    return envelope(todo, "Todo updated successfully")


@router.delete("/{todo_id}", summary="Delete Todo")
async def delete_todo(
    todo_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    todo_repo: TodoRepository = Depends(get_todo_repository)
) -> Dict[str, Any]:
    todo = await delete_owned(todo_repo, todo_id, current_user.id, "todo")
    return envelope(todo, "Todo deleted successfully")
