"""
Address repository.

Besides the generic CRUD it owns the "current address" rule: a user has at
most one address with ``current = true``.
"""

import structlog
from typing import Any, Dict
from uuid import UUID

from todo_api.src.models.address import AddressDB
from todo_api.src.repositories.base import ResourceRepository

logger = structlog.get_logger(__name__)


class AddressRepository(ResourceRepository[AddressDB]):
    """Repository for the ``addresses`` table."""

    table = "addresses"
    columns = (
        "id", "street", "city", "state", "zip", "country", "current", "user_id",
        "created_at", "updated_at",
    )
    model = AddressDB

    async def create_current(self, user_id: UUID, values: Dict[str, Any]) -> AddressDB:
        """
        Insert a new current address for a user.

        In one transaction: the user's existing current address (if any) is
        flipped to ``current = false``, then the new row is inserted with
        ``current = true``.

        Args:
            user_id: Owner of the new address
            values: street, city, state, zip, country

        Returns:
            Created address
        """
        async with self.transaction() as conn:
            existing = await self.find_one(conn=conn, user_id=user_id, current=True)

            if existing is not None:
                await self.update(existing.id, {"current": False}, conn=conn)
                logger.info(
                    "address_current_flag_moved",
                    user_id=str(user_id),
                    previous_address_id=str(existing.id)
                )

            return await self.create({**values, "user_id": user_id, "current": True}, conn=conn)
