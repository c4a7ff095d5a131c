"""
User and authentication models.

Provides Pydantic schemas for:
- User records as stored (including the password hash)
- User records as returned by the API (never the hash)
- The authenticated principal injected into handlers
- JWT payloads
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TokenType(str, Enum):
    """Kinds of JWT issued by the token service."""
    ACCESS = "access"
    REFRESH = "refresh"


class UserDB(BaseModel):
    """User row as stored in the ``users`` table."""

    id: UUID
    username: str
    email: str
    first_name: str
    last_name: str
    password: str = Field(..., description="bcrypt hash")
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def owner_id(self) -> UUID:
        """A user account is owned by the user itself."""
        return self.id


class UserResponse(BaseModel):
    """User information returned to clients."""
    id: UUID = Field(
        ...,
        description="User ID (UUID)"
    )
    username: str = Field(
        ...,
        description="Username"
    )
    email: str = Field(
        ...,
        description="Email address"
    )
    first_name: str = Field(
        ...,
        description="First name"
    )
    last_name: str = Field(
        ...,
        description="Last name"
    )
    created_at: datetime = Field(
        ...,
        description="Creation timestamp"
    )
    updated_at: Optional[datetime] = Field(
        None,
        description="Last update timestamp"
    )

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "username": "ada",
                "email": "ada@example.com",
                "first_name": "Ada",
                "last_name": "Lovelace",
                "created_at": "2025-01-15T10:30:00Z",
                "updated_at": "2025-01-15T10:30:00Z"
            }
        }
    }

    @classmethod
    def from_db(cls, user: UserDB) -> "UserResponse":
        return cls.model_validate(user.model_dump(exclude={"password"}))


class CurrentUser(BaseModel):
    """
    Current authenticated user.

    Produced by the authentication dependency for each request and passed
    explicitly into handlers.
    """
    id: UUID = Field(
        ...,
        description="User ID"
    )
    username: str = Field(
        ...,
        description="Username"
    )
    email: str = Field(
        ...,
        description="Email address"
    )

    model_config = {
        "from_attributes": True
    }


class TokenPayload(BaseModel):
    """JWT claims embedded in access and refresh tokens."""
    sub: str = Field(
        ...,
        description="Subject (user ID)"
    )
    type: TokenType = Field(
        ...,
        description="Token kind"
    )
    exp: int = Field(
        ...,
        description="Expiration timestamp (Unix epoch)"
    )
    iat: int = Field(
        ...,
        description="Issued at timestamp (Unix epoch)"
    )
