"""
Application error hierarchy.

Every error the API deliberately surfaces to clients derives from AppError
and carries a stable error code plus the HTTP status it maps to. GraphQL
responses expose both through the error ``extensions`` member; anything that
is not an AppError is treated as an internal error.
"""

from typing import Any, Dict

from fastapi import status


class AppError(Exception):
    """Base class for client-facing errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> Dict[str, Any]:
        """GraphQL error extensions (picked up by graphql-core)."""
        return {"code": self.code, "statusCode": self.status_code}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(AppError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Caller is not authenticated or presented bad credentials."""

    code = "AUTHENTICATION_ERROR"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Caller is authenticated but lacks the required role."""

    code = "AUTHORIZATION_ERROR"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    """Requested resource does not exist."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    """Write would violate a uniqueness constraint."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
