"""Todo models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TodoDB(BaseModel):
    """Todo row as stored in the ``todos`` table."""

    id: UUID
    name: str
    description: str
    completed: bool
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        return self.user_id


class TodoPatch(BaseModel):
    """Fields a todo owner may change; anything else in the body is ignored."""

    name: Optional[str] = Field(None, description="New name")
    description: Optional[str] = Field(None, description="New description")
    completed: Optional[bool] = Field(None, description="Completion flag")

    model_config = ConfigDict(extra="ignore")
