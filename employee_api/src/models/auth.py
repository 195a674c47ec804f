"""
Authentication and user models.

Provides Pydantic schemas for:
- User documents as stored in MongoDB
- Registration and login requests
- JWT token payloads
- The authenticated user attached to each request
- Role management
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# ============================================================================
# Role Enum
# ============================================================================


class Role(str, Enum):
    """
    User roles.

    - ADMIN: May add, update and delete employee records
    - EMPLOYEE: Read-only access to the directory
    """
    ADMIN = "admin"
    EMPLOYEE = "employee"


# ============================================================================
# Database Models
# ============================================================================


class UserDB(BaseModel):
    """User document as stored in the ``users`` collection."""

    id: str = Field(..., description="User ID (ObjectId hex)")
    username: str = Field(..., description="Username (lowercase)")
    email: str = Field(..., description="Email address (lowercase)")
    password_hash: str = Field(..., description="BCrypt password hash")
    role: Role = Field(default=Role.EMPLOYEE, description="User role")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserDB":
        """Build a UserDB from a raw MongoDB document."""
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            role=doc.get("role", Role.EMPLOYEE.value),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"<UserDB(id={self.id}, username='{self.username}', role='{self.role.value}')>"


# ============================================================================
# Pydantic Request Models
# ============================================================================


class RegisterRequest(BaseModel):
    """Registration request schema."""
    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Username (3-50 characters)"
    )
    email: EmailStr = Field(
        ...,
        description="Email address"
    )
    password: str = Field(
        ...,
        min_length=6,
        max_length=100,
        description="Password (6-100 characters)"
    )
    role: Optional[Role] = Field(
        None,
        description="Requested role (defaults to employee)"
    )

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: Any) -> Any:
        """Usernames are stored trimmed and lowercase."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are stored lowercase."""
        return v.lower()

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "jdoe",
                "email": "jdoe@example.com",
                "password": "secret123",
                "role": "employee"
            }
        }
    }


class LoginRequest(BaseModel):
    """Login request schema. ``username`` may also be an email address."""
    username: str = Field(
        ...,
        min_length=1,
        description="Username or email"
    )
    password: str = Field(
        ...,
        min_length=1,
        description="Password"
    )

    @property
    def normalized_username(self) -> str:
        """Lookup key matching how usernames and emails are stored."""
        return self.username.strip().lower()


# ============================================================================
# Token Models
# ============================================================================


class TokenPayload(BaseModel):
    """
    JWT token payload/claims.

    Contains user identity and role embedded in the JWT token.
    """
    sub: str = Field(
        ...,
        description="Subject (user ID)"
    )
    username: str = Field(
        ...,
        description="Username"
    )
    role: Role = Field(
        ...,
        description="User role at issue time"
    )
    exp: int = Field(
        ...,
        description="Expiration timestamp (Unix epoch)"
    )
    iat: int = Field(
        ...,
        description="Issued at timestamp (Unix epoch)"
    )


# ============================================================================
# Response Models
# ============================================================================


class CurrentUser(BaseModel):
    """
    Current authenticated user model.

    Used in resolvers to represent the authenticated user making the
    request. Built from the users collection, never from token claims alone.
    """
    id: str = Field(
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
    role: Role = Field(
        ...,
        description="User role"
    )

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user: UserDB) -> "CurrentUser":
        """Strip credentials from a stored user."""
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)

    def has_role(self, role: Role) -> bool:
        """
        Check if user has a specific role.

        Args:
            role: Role to check

        Returns:
            True if user has the role, False otherwise
        """
        return self.role == role

    def has_any_role(self, roles: List[Role]) -> bool:
        """
        Check if user has any of the specified roles.

        Args:
            roles: List of roles to check

        Returns:
            True if user has any of the roles, False otherwise
        """
        return any(self.has_role(role) for role in roles)

    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.has_role(Role.ADMIN)


class AuthPayload(BaseModel):
    """Result of a successful login or registration."""
    token: str = Field(
        ...,
        min_length=10,
        description="JWT access token"
    )
    user: CurrentUser = Field(
        ...,
        description="Authenticated user"
    )
