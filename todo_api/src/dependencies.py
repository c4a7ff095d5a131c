"""
FastAPI dependency injection for database, repositories and services.

Provides injectable dependencies for:
- Database connections (asyncpg pool)
- Repository instances, one per resource table
- Service instances
- List endpoint parameters

All dependencies use FastAPI's dependency injection system and are designed
to be composable and testable (override them through
``app.dependency_overrides``).
"""

import asyncpg
import structlog
from typing import Any, Dict, List, Optional
from fastapi import Depends, Query

from todo_api.src.config import get_settings
from todo_api.src.repositories.address_repo import AddressRepository
from todo_api.src.repositories.menu_repo import (
    CategoryRepository, MenuOptionRepository, MenuRepository
)
from todo_api.src.repositories.todo_repo import TodoRepository
from todo_api.src.repositories.user_repo import UserRepository
from todo_api.src.services.auth_service import AuthService

logger = structlog.get_logger(__name__)


# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool() -> asyncpg.Pool:
    """
    Initialize database connection pool.

    Should be called during application startup.

    Returns:
        asyncpg connection pool
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.database_dsn,
            min_size=max(1, settings.database_pool_size // 2),
            max_size=settings.database_pool_size,
            command_timeout=settings.database_command_timeout
        )

        logger.info(
            "database_pool_initialized",
            pool_size=settings.database_pool_size,
            database=settings.database_dsn.split("@")[-1]
        )

        return _pool

    except Exception as e:
        logger.error("database_pool_init_failed", error=str(e))
        raise


async def close_db_pool():
    """
    Close database connection pool.

    Should be called during application shutdown.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        logger.info("database_pool_closed")
        _pool = None


def get_db_pool() -> asyncpg.Pool:
    """
    Get database connection pool.

    Returns:
        asyncpg connection pool

    Raises:
        RuntimeError: If pool is not initialized
    """
    if _pool is None:
        logger.error("database_pool_not_initialized")
        raise RuntimeError(
            "Database pool not initialized. Call init_db_pool() during startup."
        )
    return _pool


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_user_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> UserRepository:
    """
    Get user repository instance.

    Example:
        @app.get("/users/{user_id}")
        async def get_user(
            user_id: UUID,
            repo: UserRepository = Depends(get_user_repository)
        ):
            return await repo.get_by_id(user_id)
    """
    return UserRepository(pool)


def get_todo_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> TodoRepository:
    return TodoRepository(pool)


def get_address_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> AddressRepository:
    return AddressRepository(pool)


def get_category_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> CategoryRepository:
    return CategoryRepository(pool)


def get_menu_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> MenuRepository:
    return MenuRepository(pool)


def get_menu_option_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> MenuOptionRepository:
    return MenuOptionRepository(pool)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository)
) -> AuthService:
    """
    Get authentication service with injected user repository.

    Args:
        user_repo: User repository

    Returns:
        Authentication service
    """
    return AuthService(user_repo)


# ============================================================================
# LIST DEPENDENCIES
# ============================================================================


def get_list_params(
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    sort: Optional[List[str]] = Query(None, description="Sort expressions like 'name:asc' (repeatable)")
) -> Dict[str, Any]:
    """
    Collect raw list parameters from the query string.

    Values are kept as strings; the list-query builder normalises them so
    that malformed input falls back to defaults instead of failing.

    Returns:
        Mapping with ``page``, ``limit`` and ``sort``
    """
    return {"page": page, "limit": limit, "sort": sort}
