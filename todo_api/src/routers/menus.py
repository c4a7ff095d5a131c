"""
Menu and menu option routers.

Menus belong to a category and carry a price; menu options belong to a menu.
Reads are public, changes require authentication and ownership.
"""

import structlog
from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status

from todo_api.src.dependencies import (
    get_list_params, get_menu_option_repository, get_menu_repository
)
from todo_api.src.errors import NotFound
from todo_api.src.middleware.auth import get_current_user
from todo_api.src.models.auth import CurrentUser
from todo_api.src.models.common import ErrorResponse, envelope
from todo_api.src.models.menu import MenuOptionPatch, MenuPatch
from todo_api.src.repositories.menu_repo import MenuOptionRepository, MenuRepository
from todo_api.src.services.crud import (
    apply_patch, delete_owned, fetch_page, get_or_404, list_query, update_owned,
    validate_or_raise
)
from todo_api.src.services.validation import rules

logger = structlog.get_logger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    403: {"model": ErrorResponse, "description": "Forbidden"},
    404: {"model": ErrorResponse, "description": "Not Found"}
}

router = APIRouter(prefix="/menus", tags=["Menus"], responses=_ERROR_RESPONSES)

option_router = APIRouter(prefix="/menu-options", tags=["Menu Options"], responses=_ERROR_RESPONSES)

MENU_FILTERS = ("name", "price", "description", "category_id")
MENU_SORTS = ("id", "name", "price")

MENU_OPTION_FILTERS = ("name", "required", "multiple_selection", "menu_id")
MENU_OPTION_SORTS = ("id", "name", "max_selection")

MENU_SCHEMA = rules({
    "name": "string|required",
    "price": "numeric|required",
    "description": "string|required",
    "category_id": "string|required",
})

MENU_OPTION_SCHEMA = rules({
    "name": "string|required",
    "max_selection": "integer|required",
    "required": "boolean",
    "menu_id": "string|required",
    "multiple_selection": "boolean|required",
})


# ============================================================================
# MENUS
# ============================================================================


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Menu")
async def create_menu(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    menu_repo: MenuRepository = Depends(get_menu_repository)
) -> Dict[str, Any]:
    """Create a menu in a category. An unknown ``category_id`` is rejected by the store (400)."""
    values = validate_or_raise(MENU_SCHEMA, body)
    menu = await menu_repo.create({**values, "user_id": current_user.id})
    return envelope(menu, "Menu created successfully")


@router.post("/get", summary="List Menus")
async def list_menus(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    menu_repo: MenuRepository = Depends(get_menu_repository)
) -> Dict[str, Any]:
    query = list_query(MENU_FILTERS, MENU_SORTS, body, params)
    menus, pagination = await fetch_page(menu_repo, query)
    return envelope(menus, "Menus fetched successfully", pagination=pagination)


@router.get("/{menuID}", summary="Get Menu")
async def get_menu(
    menuID: UUID,
    menu_repo: MenuRepository = Depends(get_menu_repository)
) -> Dict[str, Any]:
    menu = await get_or_404(menu_repo, menuID, "menu")
    return envelope(menu, f"Menu with {menuID} retrieved successfully")


@router.put("/{menu_id}", summary="Update Menu")
async def update_menu(
    menu_id: UUID,
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    menu_repo: MenuRepository = Depends(get_menu_repository)
) -> Dict[str, Any]:
    values = apply_patch(MenuPatch, body)
    menu = await update_owned(menu_repo, menu_id, current_user.id, values, "menu")
    return envelope(menu, "Menu updated successfully")


@router.delete("/{menu_id}", summary="Delete Menu")
async def delete_menu(
    menu_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    menu_repo: MenuRepository = Depends(get_menu_repository)
) -> Dict[str, Any]:
    menu = await delete_owned(menu_repo, menu_id, current_user.id, "menu")
    return envelope(menu, "Menu deleted successfully")


# ============================================================================
# MENU OPTIONS
# ============================================================================


@option_router.post("", status_code=status.HTTP_201_CREATED, summary="Create Menu Option")
async def create_menu_option(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    menu_repo: MenuRepository = Depends(get_menu_repository),
    option_repo: MenuOptionRepository = Depends(get_menu_option_repository)
) -> Dict[str, Any]:
    """
    Create an option on an existing menu.

    **Error Responses:**
    - 404: ``menu_id`` does not reference a menu
    """
    values = validate_or_raise(MENU_OPTION_SCHEMA, body)

    try:
        menu_id = UUID(values["menu_id"])
    except ValueError:
        raise NotFound("No menu found")

    if await menu_repo.get_by_id(menu_id) is None:
        logger.info("menu_option_rejected_menu_missing", menu_id=str(menu_id))
        raise NotFound("No menu found")

    option = await option_repo.create({**values, "menu_id": menu_id, "user_id": current_user.id})
    return envelope(option, "Menu option created successfully")


@option_router.post("/get", summary="List Menu Options")
async def list_menu_options(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    option_repo: MenuOptionRepository = Depends(get_menu_option_repository)
) -> Dict[str, Any]:
    query = list_query(MENU_OPTION_FILTERS, MENU_OPTION_SORTS, body, params)
    options, pagination = await fetch_page(option_repo, query)
    return envelope(options, "Menu options fetched successfully", pagination=pagination)


@option_router.get("/{option_id}", summary="Get Menu Option")
async def get_menu_option(
    option_id: UUID,
    option_repo: MenuOptionRepository = Depends(get_menu_option_repository)
) -> Dict[str, Any]:
    option = await get_or_404(option_repo, option_id, "menu option")
    return envelope(option, f"Menu option with {option_id} fetched successfully")


@option_router.put("/{option_id}", summary="Update Menu Option")
async def update_menu_option(
    option_id: UUID,
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    option_repo: MenuOptionRepository = Depends(get_menu_option_repository)
) -> Dict[str, Any]:
    values = apply_patch(MenuOptionPatch, body)
    option = await update_owned(option_repo, option_id, current_user.id, values, "menu option")
    return envelope(option, "Menu option updated successfully")


@option_router.delete("/{option_id}", summary="Delete Menu Option")
async def delete_menu_option(
    option_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    option_repo: MenuOptionRepository = Depends(get_menu_option_repository)
) -> Dict[str, Any]:
    option = await delete_owned(option_repo, option_id, current_user.id, "menu option")
    return envelope(option, "Menu option deleted successfully")
