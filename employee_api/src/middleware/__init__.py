"""Request authentication and authorization helpers."""

from employee_api.src.middleware.auth import extract_bearer_token, get_bearer_token
from employee_api.src.middleware.rbac import require_admin, require_auth, require_role

__all__ = [
    # Auth
    "extract_bearer_token",
    "get_bearer_token",
    # RBAC
    "require_admin",
    "require_auth",
    "require_role",
]
