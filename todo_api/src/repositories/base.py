"""
Generic repository for single-table resources.

Provides async CRUD and list queries using asyncpg with PostgreSQL. Concrete
repositories declare their table, columns and row model; SQL identifiers are
only ever taken from those declarations, values are always bound parameters.
"""

import asyncpg
import structlog
from contextlib import asynccontextmanager
from typing import Any, ClassVar, Dict, Generic, List, Optional, Tuple, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from todo_api.src.errors import ValidationError
from todo_api.src.services.query_builder import ListQuery

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResourceRepository(Generic[ModelT]):
    """Repository for one table whose rows map onto ``model``."""

    table: ClassVar[str]
    columns: ClassVar[Tuple[str, ...]]
    model: ClassVar[Type[BaseModel]]

    def __init__(self, pool: asyncpg.Pool):
        """
        Initialize repository.

        Args:
            pool: asyncpg connection pool
        """
        self.pool = pool

    @asynccontextmanager
    async def transaction(self):
        """
        Context manager for database transactions.

        Yields:
            asyncpg.Connection: Database connection
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    # ------------------------------------------------------------------
    # SQL helpers
    # ------------------------------------------------------------------

    @property
    def _select_list(self) -> str:
        return ", ".join(self.columns)

    def _check_column(self, column: str) -> str:
        if column not in self.columns:
            raise ValueError(f"Unknown column '{column}' for table {self.table}")
        return column

    def _coerce(self, column: str, value: Any) -> Any:
        """Convert a client value to the Python type the driver expects for ``column``."""
        annotation = self.model.model_fields[column].annotation
        try:
            return TypeAdapter(annotation).validate_python(value)
        except PydanticValidationError:
            raise ValidationError(f"Invalid value for field '{column}'")

    def _to_model(self, row: asyncpg.Record) -> ModelT:
        return self.model.model_validate(dict(row))

    def _where(self, filters: Dict[str, Any], start: int = 1) -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []
        param_count = start

        for column, value in filters.items():
            clauses.append(f"{self._check_column(column)} = ${param_count}")
            params.append(self._coerce(column, value))
            param_count += 1

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where_sql, params

    def _order_by(self, order_by: List[Dict[str, str]]) -> str:
        terms = []
        for item in order_by:
            for column, direction in item.items():
                terms.append(f"{self._check_column(column)} {'DESC' if direction == 'desc' else 'ASC'}")
        return f"ORDER BY {', '.join(terms)}" if terms else ""

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def get_by_id(self, resource_id: UUID) -> Optional[ModelT]:
        """
        Get a row by ID.

        Returns:
            Row model or None if not found
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {self._select_list}
                    FROM {self.table}
                    WHERE id = $1
                    """,
                    resource_id
                )

                if not row:
                    logger.debug("resource_not_found", table=self.table, resource_id=str(resource_id))
                    return None

                return self._to_model(row)

        except Exception as e:
            logger.error("resource_get_failed", table=self.table, error=str(e), resource_id=str(resource_id))
            raise

    async def find_one(self, conn: Optional[asyncpg.Connection] = None, **filters: Any) -> Optional[ModelT]:
        """Return the first row matching all equality filters."""
        where_sql, params = self._where(filters)
        sql = f"SELECT {self._select_list} FROM {self.table} {where_sql} LIMIT 1"

        if conn is not None:
            row = await conn.fetchrow(sql, *params)
        else:
            async with self.pool.acquire() as pooled:
                row = await pooled.fetchrow(sql, *params)

        return self._to_model(row) if row else None

    async def list(self, query: ListQuery) -> Tuple[List[ModelT], int]:
        """
        List rows with filtering, sorting and pagination.

        Args:
            query: Normalized list query

        Returns:
            Tuple of (page of rows, total matching count)
        """
        try:
            async with self.pool.acquire() as conn:
                where_sql, params = self._where(query.filters)
                param_count = len(params) + 1

                count_row = await conn.fetchrow(
                    f"""
                    SELECT COUNT(*) as count
                    FROM {self.table}
                    {where_sql}
                    """,
                    *params
                )
                total_count = count_row["count"]

                rows = await conn.fetch(
                    f"""
                    SELECT {self._select_list}
                    FROM {self.table}
                    {where_sql}
                    {self._order_by(query.order_by)}
                    LIMIT ${param_count} OFFSET ${param_count + 1}
                    """,
                    *params,
                    query.take,
                    query.skip
                )

                return [self._to_model(row) for row in rows], total_count

        except ValidationError:
            raise
        except Exception as e:
            logger.error("resource_list_failed", table=self.table, error=str(e), filters=list(query.filters))
            raise

    async def create(self, values: Dict[str, Any], conn: Optional[asyncpg.Connection] = None) -> ModelT:
        """
        Insert a row.

        Columns missing from ``values`` take their database defaults.

        Args:
            values: Column -> value
            conn: Connection of an enclosing transaction (optional)

        Returns:
            Created row
        """
        names = [self._check_column(name) for name in values]
        params = [self._coerce(name, values[name]) for name in names]
        placeholders = ", ".join(f"${i}" for i in range(1, len(names) + 1))

        sql = f"""
            INSERT INTO {self.table} ({', '.join(names)}, created_at, updated_at)
            VALUES ({placeholders}{', ' if names else ''}NOW(), NOW())
            RETURNING {self._select_list}
        """

        try:
            if conn is not None:
                row = await conn.fetchrow(sql, *params)
            else:
                async with self.pool.acquire() as pooled:
                    row = await pooled.fetchrow(sql, *params)

            created = self._to_model(row)
            logger.info("resource_created", table=self.table, resource_id=str(created.id))
            return created

        except Exception as e:
            logger.error("resource_create_failed", table=self.table, error=str(e))
            raise

    async def update(
        self,
        resource_id: UUID,
        values: Dict[str, Any],
        conn: Optional[asyncpg.Connection] = None
    ) -> Optional[ModelT]:
        """
        Patch a row; only the given columns change.

        Returns:
            Updated row or None if not found
        """
        updates = []
        params: List[Any] = []
        param_count = 1

        for name, value in values.items():
            updates.append(f"{self._check_column(name)} = ${param_count}")
            params.append(self._coerce(name, value))
            param_count += 1

        updates.append("updated_at = NOW()")
        params.append(resource_id)

        sql = f"""
            UPDATE {self.table}
            SET {', '.join(updates)}
            WHERE id = ${param_count}
            RETURNING {self._select_list}
        """

        try:
            if conn is not None:
                row = await conn.fetchrow(sql, *params)
            else:
                async with self.pool.acquire() as pooled:
                    row = await pooled.fetchrow(sql, *params)

            if not row:
                logger.debug("resource_not_found", table=self.table, resource_id=str(resource_id))
                return None

            logger.info("resource_updated", table=self.table, resource_id=str(resource_id), fields=list(values))
            return self._to_model(row)

        except Exception as e:
            logger.error("resource_update_failed", table=self.table, error=str(e), resource_id=str(resource_id))
            raise

    async def delete(self, resource_id: UUID) -> Optional[ModelT]:
        """
        Delete a row.

        Returns:
            The deleted row or None if not found
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    DELETE FROM {self.table}
                    WHERE id = $1
                    RETURNING {self._select_list}
                    """,
                    resource_id
                )

                if not row:
                    logger.debug("resource_not_found", table=self.table, resource_id=str(resource_id))
                    return None

                logger.info("resource_deleted", table=self.table, resource_id=str(resource_id))
                return self._to_model(row)

        except Exception as e:
            logger.error("resource_delete_failed", table=self.table, error=str(e), resource_id=str(resource_id))
            raise
