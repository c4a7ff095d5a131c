"""Address models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AddressDB(BaseModel):
    """
    Address row as stored in the ``addresses`` table.

    At most one address per user carries ``current = true``.
    """

    id: UUID
    street: str
    city: str
    state: str
    zip: str
    country: str
    current: bool
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        return self.user_id


class AddressPatch(BaseModel):
    """
    Fields an address owner may change.

    ``current`` is deliberately absent: it is only moved by address creation.
    """

    street: Optional[str] = Field(None)
    city: Optional[str] = Field(None)
    state: Optional[str] = Field(None)
    zip: Optional[str] = Field(None)
    country: Optional[str] = Field(None)

    model_config = ConfigDict(extra="ignore")
