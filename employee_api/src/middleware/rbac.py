"""
Role-Based Access Control (RBAC) for GraphQL resolvers.

Resolvers call these guards with their request context before touching a
service. Denials are logged and raised as application errors so the GraphQL
layer reports them with the matching error code.
"""

import structlog
from typing import Iterable, Optional, Protocol

from employee_api.src.errors import AuthenticationError, AuthorizationError
from employee_api.src.models.auth import CurrentUser, Role

logger = structlog.get_logger(__name__)


class HasUser(Protocol):
    """Anything carrying the authenticated user of a request."""

    user: Optional[CurrentUser]


def require_auth(context: HasUser) -> CurrentUser:
    """
    Require an authenticated caller.

    Args:
        context: Request context

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If the request is anonymous
    """
    user = context.user
    if user is None:
        logger.warning("access_denied_not_authenticated")
        raise AuthenticationError("Not authenticated")
    return user


def require_role(context: HasUser, roles: Iterable[Role]) -> CurrentUser:
    """
    Require an authenticated caller holding one of ``roles``.

    Args:
        context: Request context
        roles: Accepted roles

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If the request is anonymous
        AuthorizationError: If the user holds none of the roles
    """
    user = require_auth(context)
    roles = list(roles)

    if not user.has_any_role(roles):
        logger.warning(
            "access_denied_role_required",
            user_id=user.id,
            username=user.username,
            role=user.role.value,
            required_roles=[r.value for r in roles],
        )
        raise AuthorizationError("Insufficient permissions")

    logger.debug("access_granted", user_id=user.id, role=user.role.value)
    return user


def require_admin(context: HasUser) -> CurrentUser:
    """Require the admin role."""
    return require_role(context, [Role.ADMIN])
