"""
Authentication service for user authentication and JWT token management.

Provides:
- Password hashing and verification (passlib + bcrypt)
- JWT token creation and validation
- Registration and login
- Token-to-user resolution backed by the user cache
"""

import structlog
from typing import Optional, Union
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from employee_api.src.config import Settings, get_settings
from employee_api.src.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from employee_api.src.models.auth import (
    AuthPayload, CurrentUser, LoginRequest, RegisterRequest, Role, TokenPayload, UserDB
)
from employee_api.src.repositories.user_repo import UserRepository
from employee_api.src.services.user_cache import UserCache
from employee_api.src.utils.datetime_utils import utcnow
from employee_api.src.utils.validation import validate_model

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        user_repo: UserRepository,
        user_cache: Optional[UserCache] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
            user_cache: Cache for token-to-user lookups (optional)
            settings: Settings override (defaults to get_settings())
        """
        self.user_repo = user_repo
        self.user_cache = user_cache
        self.settings = settings or get_settings()

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.settings.password_bcrypt_rounds
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed")
            return hashed
        except ValueError as e:
            logger.error("password_hash_failed", error=str(e))
            raise

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
            logger.debug("password_verified", verified=verified)
            return verified
        except (ValueError, TypeError) as e:
            logger.error("password_verify_failed", error=str(e))
            return False

    def create_access_token(
        self,
        user: Union[UserDB, CurrentUser],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token.

        Args:
            user: User the token identifies
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload = {
            "sub": user.id,
            "username": user.username,
            "role": user.role.value,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp())
        }

        token = jwt.encode(
            payload,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm
        )

        logger.info(
            "access_token_created",
            user_id=user.id,
            username=user.username,
            expires_in=expires_delta.total_seconds()
        )

        return token

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm]
            )
            token_payload = TokenPayload.model_validate(payload)

            logger.debug("token_decoded", user_id=token_payload.sub)
            return token_payload

        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None
        except PydanticValidationError as e:
            logger.warning("token_claims_invalid", error=str(e))
            return None

    def _issue(self, user: UserDB) -> AuthPayload:
        current_user = CurrentUser.from_user(user)
        if self.user_cache is not None:
            self.user_cache.set(current_user.id, current_user)
        return AuthPayload(token=self.create_access_token(user), user=current_user)

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: Optional[Union[Role, str]] = None,
        requested_by: Optional[CurrentUser] = None,
    ) -> AuthPayload:
        """
        Register a new user and log them in.

        Args:
            username: Desired username (3-50 characters)
            email: Email address
            password: Password (6-100 characters)
            role: Requested role (defaults to employee)
            requested_by: Authenticated caller, if any

        Returns:
            Token and user

        Raises:
            ValidationError: If the input is invalid
            AuthorizationError: If an admin account is requested without permission
            ConflictError: If the username or email is taken
        """
        request = validate_model(
            RegisterRequest,
            {"username": username, "email": email, "password": password, "role": role},
        )
        role = request.role or Role.EMPLOYEE

        if role == Role.ADMIN and not self.settings.allow_admin_self_registration:
            if requested_by is None or not requested_by.is_admin():
                logger.warning(
                    "register_admin_denied",
                    username=request.username,
                    requested_by=requested_by.username if requested_by else None,
                )
                raise AuthorizationError("Only administrators can register admin users")

        if await self.user_repo.user_exists(request.username, request.email):
            logger.warning("register_conflict", username=request.username)
            raise ConflictError(UserRepository.conflict_message)

        password_hash = await run_in_threadpool(self.hash_password, request.password)
        now = utcnow()
        user = await self.user_repo.create_user({
            "username": request.username,
            "email": request.email,
            "password_hash": password_hash,
            "role": role.value,
            "created_at": now,
            "updated_at": now,
        })

        logger.info("user_registered", user_id=user.id, username=user.username, role=role.value)
        return self._issue(user)

    async def login(self, username: str, password: str) -> AuthPayload:
        """
        Authenticate with username (or email) and password.

        Args:
            username: Username or email, any case
            password: Password

        Returns:
            Token and user

        Raises:
            ValidationError: If either field is empty
            AuthenticationError: If the credentials do not match a user
        """
        request = validate_model(LoginRequest, {"username": username, "password": password})
        login = request.normalized_username

        user = await self.user_repo.get_user_by_login(login)
        if not user:
            logger.warning("authentication_failed_user_not_found", username=login)
            raise AuthenticationError(INVALID_CREDENTIALS)

        verified = await run_in_threadpool(self.verify_password, request.password, user.password_hash)
        if not verified:
            logger.warning("authentication_failed_invalid_password", username=login)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("login_success", user_id=user.id, username=user.username)
        return self._issue(user)

    async def get_current_user(self, user_id: str) -> CurrentUser:
        """
        Load a user by id.

        Raises:
            NotFoundError: If no such user exists
        """
        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User")
        return CurrentUser.from_user(user)

    async def get_user_from_token(self, token: Optional[str]) -> Optional[CurrentUser]:
        """
        Resolve the user a bearer token identifies.

        Args:
            token: JWT token string (may be None)

        Returns:
            Current user or None if the token is missing, invalid or stale
        """
        if not token:
            return None

        payload = self.decode_token(token)
        if not payload:
            return None

        if self.user_cache is not None:
            cached = self.user_cache.get(payload.sub)
            if cached is not None:
                return cached

        user = await self.user_repo.get_user_by_id(payload.sub)
        if not user:
            logger.warning("get_current_user_failed_user_not_found", user_id=payload.sub)
            return None

        current_user = CurrentUser.from_user(user)
        if self.user_cache is not None:
            self.user_cache.set(current_user.id, current_user)

        logger.debug("current_user_retrieved", user_id=current_user.id, username=current_user.username)
        return current_user
