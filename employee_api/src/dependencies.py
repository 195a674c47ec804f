"""
FastAPI dependency injection for database, services, and the GraphQL context.

Provides injectable dependencies for:
- The MongoDB connection (one client per process)
- The process-wide user lookup cache
- Repository and service instances
- The per-request GraphQL context (bearer token, caller, loaders)

All dependencies use FastAPI's dependency injection system and can be
swapped through ``app.dependency_overrides`` in tests.
"""

import structlog
from typing import Optional
from functools import lru_cache
from fastapi import Depends, Request

from employee_api.src.config import get_settings, Settings
from employee_api.src.database import Database
from employee_api.src.gql.context import GraphQLContext
from employee_api.src.middleware.auth import get_bearer_token
from employee_api.src.repositories.employee_repo import EmployeeRepository
from employee_api.src.repositories.user_repo import UserRepository
from employee_api.src.services.auth_service import AuthService
from employee_api.src.services.employee_service import EmployeeService
from employee_api.src.services.user_cache import UserCache
from shared.metrics import get_metrics

logger = structlog.get_logger(__name__)


# ============================================================================
# DATABASE CONNECTION
# ============================================================================

_database: Optional[Database] = None


async def init_database(settings: Settings) -> Database:
    """
    Connect to MongoDB and ensure indexes.

    Should be called during application startup.

    Returns:
        Connected database wrapper
    """
    global _database

    if _database is not None:
        return _database

    database = Database(settings)
    await database.connect()

    await UserRepository(database.db).ensure_indexes()
    await EmployeeRepository(database.db).ensure_indexes()
    logger.info("database_indexes_ensured")

    _database = database
    return _database


async def close_database():
    """
    Close the MongoDB client.

    Should be called during application shutdown.
    """
    global _database

    if _database is not None:
        await _database.close()
        _database = None


def get_optional_database() -> Optional[Database]:
    """Database wrapper, or None before startup has connected it."""
    return _database


def get_database() -> Database:
    """
    Get the connected database wrapper.

    Raises:
        RuntimeError: If the database is not initialized
    """
    if _database is None:
        logger.error("database_not_initialized")
        raise RuntimeError(
            "Database not initialized. Call init_database() during startup."
        )
    return _database


# ============================================================================
# CACHE
# ============================================================================


@lru_cache()
def get_user_cache() -> UserCache:
    """Process-wide user lookup cache."""
    settings = get_settings()
    return UserCache(
        ttl_seconds=settings.user_cache_ttl_seconds,
        max_size=settings.user_cache_max_size,
        prometheus=get_metrics() if settings.metrics_enabled else None,
    )


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_settings_dependency() -> Settings:
    """Get application settings."""
    return get_settings()


def get_user_repository(database: Database = Depends(get_database)) -> UserRepository:
    """Get user repository instance."""
    return UserRepository(database.db)


def get_employee_repository(database: Database = Depends(get_database)) -> EmployeeRepository:
    """Get employee repository instance."""
    return EmployeeRepository(database.db)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings_dependency),
) -> AuthService:
    """
    Get authentication service.

    Args:
        user_repo: User repository
        settings: Application settings

    Returns:
        Authentication service sharing the process-wide user cache
    """
    return AuthService(user_repo, user_cache=get_user_cache(), settings=settings)


def get_employee_service(
    employee_repo: EmployeeRepository = Depends(get_employee_repository),
    settings: Settings = Depends(get_settings_dependency),
) -> EmployeeService:
    """Get employee service."""
    return EmployeeService(employee_repo, settings=settings)


# ============================================================================
# GRAPHQL CONTEXT
# ============================================================================


async def get_graphql_context(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
    auth_service: AuthService = Depends(get_auth_service),
    employee_service: EmployeeService = Depends(get_employee_service),
) -> GraphQLContext:
    """
    Build the context for one GraphQL request.

    An invalid or expired token yields an anonymous context; resolvers that
    need a user reject the request themselves.
    """
    token = get_bearer_token(request)
    user = await auth_service.get_user_from_token(token)

    if user is not None:
        structlog.contextvars.bind_contextvars(user_id=user.id)

    return GraphQLContext(
        settings=settings,
        auth_service=auth_service,
        employee_service=employee_service,
        token=token,
        user=user,
    )
