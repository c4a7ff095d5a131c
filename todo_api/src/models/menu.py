"""
Menu catalogue models: categories, menus and menu options.

A menu belongs to a category; a menu option belongs to a menu. All three are
owned by the user who created them.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Category
# ============================================================================


class CategoryDB(BaseModel):
    """Category row as stored in the ``categories`` table."""

    id: UUID
    name: str
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        return self.user_id


class CategoryPatch(BaseModel):
    name: Optional[str] = Field(None)

    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Menu
# ============================================================================


class MenuDB(BaseModel):
    """Menu row as stored in the ``menus`` table."""

    id: UUID
    name: str
    price: float
    description: str
    category_id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        return self.user_id


class MenuPatch(BaseModel):
    name: Optional[str] = Field(None)
    description: Optional[str] = Field(None)
    price: Optional[float] = Field(None)
    category_id: Optional[UUID] = Field(None)

    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Menu option
# ============================================================================


class MenuOptionDB(BaseModel):
    """Menu option row as stored in the ``menu_options`` table."""

    id: UUID
    name: str
    max_selection: int
    required: Optional[bool] = None
    multiple_selection: bool
    menu_id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        return self.user_id


class MenuOptionPatch(BaseModel):
    name: Optional[str] = Field(None)
    max_selection: Optional[int] = Field(None)
    required: Optional[bool] = Field(None)
    multiple_selection: Optional[bool] = Field(None)

    model_config = ConfigDict(extra="ignore")
