"""
Category router.

Listing and reading categories is public; creating, updating and deleting
require authentication and, for changes, ownership.
"""

from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status

from todo_api.src.dependencies import get_category_repository, get_list_params
from todo_api.src.middleware.auth import get_current_user
from todo_api.src.models.auth import CurrentUser
from todo_api.src.models.common import ErrorResponse, envelope
from todo_api.src.models.menu import CategoryPatch
from todo_api.src.repositories.menu_repo import CategoryRepository
from todo_api.src.services.crud import (
    apply_patch, delete_owned, fetch_page, get_or_404, list_query, update_owned,
    validate_or_raise
)
from todo_api.src.services.validation import rules

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)

CATEGORY_FILTERS = ("name",)
CATEGORY_SORTS = ("name", "id")

CATEGORY_SCHEMA = rules({"name": "string|required"})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Category")
async def create_category(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> Dict[str, Any]:
    values = validate_or_raise(CATEGORY_SCHEMA, body)
    category = await category_repo.create({**values, "user_id": current_user.id})
    return envelope(category, "Category created successfully")


@router.post("/get", summary="List Categories")
async def list_categories(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> Dict[str, Any]:
    query = list_query(CATEGORY_FILTERS, CATEGORY_SORTS, body, params)
    categories, pagination = await fetch_page(category_repo, query)
    return envelope(categories, "Categories fetched successfully", pagination=pagination)


@router.get("/{category_id}", summary="Get Category")
async def get_category(
    category_id: UUID,
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> Dict[str, Any]:
    category = await get_or_404(category_repo, category_id, "category")
    return envelope(category, f"Category with {category_id} fetched successfully")


@router.put("/{category_id}", summary="Update Category")
async def update_category(
    category_id: UUID,
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> Dict[str, Any]:
    values = apply_patch(CategoryPatch, body)
    category = await update_owned(category_repo, category_id, current_user.id, values, "category")
    return envelope(category, "Category updated successfully")


@router.delete("/{category_id}", summary="Delete Category")
async def delete_category(
    category_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> Dict[str, Any]:
    category = await delete_owned(category_repo, category_id, current_user.id, "category")
    return envelope(category, "Category deleted successfully")
