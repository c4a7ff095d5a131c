"""Repositories for the menu catalogue: categories, menus and menu options."""

from decimal import Decimal, InvalidOperation
from typing import Any

from todo_api.src.errors import ValidationError
from todo_api.src.models.menu import CategoryDB, MenuDB, MenuOptionDB
from todo_api.src.repositories.base import ResourceRepository


class CategoryRepository(ResourceRepository[CategoryDB]):
    """Repository for the ``categories`` table."""

    table = "categories"
    columns = ("id", "name", "user_id", "created_at", "updated_at")
    model = CategoryDB


class MenuRepository(ResourceRepository[MenuDB]):
    """Repository for the ``menus`` table."""

    table = "menus"
    columns = (
        "id", "name", "price", "description", "category_id", "user_id",
        "created_at", "updated_at",
    )
    model = MenuDB

    def _coerce(self, column: str, value: Any) -> Any:
        # price is NUMERIC; bind it as Decimal to keep exact values
        if column == "price" and not isinstance(value, bool):
            try:
                return Decimal(str(value))
            except InvalidOperation:
                raise ValidationError("Invalid value for field 'price'")
        return super()._coerce(column, value)


class MenuOptionRepository(ResourceRepository[MenuOptionDB]):
    """Repository for the ``menu_options`` table."""

    table = "menu_options"
    columns = (
        "id", "name", "max_selection", "required", "multiple_selection",
        "menu_id", "user_id", "created_at", "updated_at",
    )
    model = MenuOptionDB
