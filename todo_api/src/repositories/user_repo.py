"""
User repository for database operations.

Provides async CRUD operations for users using asyncpg with PostgreSQL.
"""

import asyncpg
import structlog
from typing import Optional

from todo_api.src.models.auth import UserDB
from todo_api.src.repositories.base import ResourceRepository

logger = structlog.get_logger(__name__)


class UserRepository(ResourceRepository[UserDB]):
    """Repository for user database operations."""

    table = "users"
    columns = (
        "id", "username", "email", "first_name", "last_name", "password",
        "created_at", "updated_at",
    )
    model = UserDB

    async def create_user(
        self,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str
    ) -> UserDB:
        """
        Create a new user.

        Args:
            username: Username
            email: Email address
            first_name: First name
            last_name: Last name
            password_hash: Hashed password

        Returns:
            Created user

        Raises:
            asyncpg.UniqueViolationError: If username or email already exists
        """
        try:
            return await self.create({
                "username": username,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "password": password_hash,
            })
        except asyncpg.UniqueViolationError:
            logger.warning("user_already_exists", username=username, email=email)
            raise

    async def get_user_by_email(self, email: str) -> Optional[UserDB]:
        """
        Get user by email.

        Args:
            email: Email address

        Returns:
            User or None if not found
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {self._select_list}
                    FROM users
                    WHERE email = $1
                    """,
                    email
                )

                if not row:
                    logger.debug("user_not_found", email=email)
                    return None

                return self._to_model(row)

        except Exception as e:
            logger.error("user_get_by_email_failed", error=str(e), email=email)
            raise

    async def get_user_by_username_or_email(self, username: str, email: str) -> Optional[UserDB]:
        """
        Get a user matching either the username or the email.

        Used to reject registrations that would collide with an existing
        account.
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {self._select_list}
                    FROM users
                    WHERE username = $1 OR email = $2
                    LIMIT 1
                    """,
                    username,
                    email
                )

                return self._to_model(row) if row else None

        except Exception as e:
            logger.error("user_get_by_username_or_email_failed", error=str(e), username=username)
            raise
