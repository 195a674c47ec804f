"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Database connection (MongoDB)
- Authentication (JWT and password hashing settings)
- GraphQL API settings (paths, pagination, read access)
- CORS, rate limiting and security headers
- Logging, metrics and tracing

All settings support environment variable overrides and .env file loading.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "EMPLOYEE_API_" (e.g., EMPLOYEE_API_MONGODB_URL).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Employee Directory API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    graphql_path: str = Field(
        default="/graphql",
        description="GraphQL endpoint path"
    )
    health_path: str = Field(
        default="/health",
        description="Health check endpoint path"
    )

    debug: bool = Field(
        default=False,
        description="Debug mode - enables verbose logging and error traces"
    )
    environment: str = Field(
        default="development",
        description="Environment: development|staging|production|test"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=4000,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # Database Settings (MongoDB)
    # =========================================================================

    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL"
    )
    mongodb_database: str = Field(
        default="employee_directory",
        description="MongoDB database name"
    )
    mongodb_max_pool_size: int = Field(
        default=10,
        description="Maximum connections in the driver pool",
        gt=0,
        le=500
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout (milliseconds)",
        gt=0
    )
    mongodb_socket_timeout_ms: int = Field(
        default=45000,
        description="Socket timeout (milliseconds)",
        gt=0
    )
    mongodb_connect_retries: int = Field(
        default=5,
        description="Connection attempts at startup before giving up",
        ge=1,
        le=20
    )
    mongodb_connect_retry_delay: float = Field(
        default=5.0,
        description="Delay between connection attempts (seconds)",
        ge=0
    )

    # =========================================================================
    # JWT Authentication Settings
    # =========================================================================

    jwt_secret_key: str = Field(
        default="change-this-secret-key-in-production-minimum-32-characters",
        description="Secret key for JWT token signing (MUST be changed in production)",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HS256, HS384, HS512)"
    )
    jwt_access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        description="Access token expiration time in minutes (default 30 days)",
        gt=0,
        le=60 * 24 * 90
    )

    # =========================================================================
    # Password Hashing and Registration Settings
    # =========================================================================

    password_bcrypt_rounds: int = Field(
        default=12,
        description="BCrypt hash rounds (higher = slower but more secure)",
        ge=4,
        le=14
    )
    allow_admin_self_registration: bool = Field(
        default=False,
        description="Allow anonymous callers to register with the admin role"
    )
    require_auth_for_reads: bool = Field(
        default=False,
        description="Require a logged-in user for the employees/employee queries"
    )

    # =========================================================================
    # User Lookup Cache
    # =========================================================================

    user_cache_ttl_seconds: int = Field(
        default=300,
        description="Time-to-live for cached user lookups (seconds)",
        ge=0
    )
    user_cache_max_size: int = Field(
        default=100,
        description="Maximum number of cached user lookups",
        gt=0
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Frontend origin allowed by CORS outside development"
    )
    cors_extra_origins: List[str] = Field(
        default=[],
        description="Additional allowed CORS origins"
    )
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        description="Allowed HTTP methods"
    )
    cors_allow_headers: List[str] = Field(
        default=["Content-Type", "Authorization", "Apollo-Require-Preflight"],
        description="Allowed HTTP headers"
    )

    # =========================================================================
    # Rate Limiting Settings
    # =========================================================================

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting on the GraphQL endpoint"
    )
    rate_limit_requests: int = Field(
        default=100,
        description="Max requests per window per client address",
        gt=0,
        le=100000
    )
    rate_limit_window: int = Field(
        default=900,
        description="Rate limit window (seconds)",
        gt=0,
        le=86400
    )

    # =========================================================================
    # Security Settings
    # =========================================================================

    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )
    security_require_https: bool = Field(
        default=False,
        description="Send HSTS header (enable behind TLS in production)"
    )
    security_hsts_max_age: int = Field(
        default=31536000,  # 1 year
        description="HSTS max age (seconds)"
    )

    # =========================================================================
    # Pagination Settings
    # =========================================================================

    pagination_default_page: int = Field(
        default=1,
        description="Default page number",
        gt=0
    )
    pagination_default_page_size: int = Field(
        default=10,
        description="Default page size",
        gt=0
    )
    pagination_min_page_size: int = Field(
        default=1,
        description="Minimum page size",
        gt=0
    )
    pagination_max_page_size: int = Field(
        default=100,
        description="Maximum page size",
        gt=0,
        le=1000
    )

    # =========================================================================
    # Monitoring and Observability
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_endpoint: str = Field(
        default="/metrics",
        description="Metrics endpoint path"
    )

    tracing_enabled: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing"
    )
    tracing_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP gRPC collector endpoint"
    )
    tracing_sample_rate: float = Field(
        default=0.1,
        description="Trace sampling rate (0.0-1.0, where 1.0 = 100%)",
        ge=0.0,
        le=1.0
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is a supported shared-secret algorithm."""
        allowed = ["HS256", "HS384", "HS512"]
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {allowed}, got: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("frontend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Origins never carry a trailing slash."""
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Origins allowed by CORS; every origin in development."""
        if self.is_development:
            return ["*"]
        return [self.frontend_url, *[o.rstrip("/") for o in self.cors_extra_origins]]

    @property
    def rate_limit(self) -> str:
        """Rate limit in the string notation understood by slowapi."""
        return f"{self.rate_limit_requests} per {self.rate_limit_window} seconds"

    @property
    def mongodb_url_redacted(self) -> str:
        """MongoDB URL without credentials, for logging."""
        if "@" not in self.mongodb_url:
            return self.mongodb_url
        scheme, _, rest = self.mongodb_url.partition("://")
        return f"{scheme}://***@{rest.split('@', 1)[-1]}"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="EMPLOYEE_API_",  # Environment variable prefix
        env_file=".env",             # Load from .env file
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",              # Ignore extra environment variables
        validate_default=True,       # Validate default values
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application. Settings are loaded from:
    1. Environment variables with EMPLOYEE_API_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from employee_api.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.mongodb_database)
        employee_directory
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.

    Example:
        >>> import os
        >>> from employee_api.src.config import get_settings, clear_settings_cache
        >>> os.environ["EMPLOYEE_API_DEBUG"] = "true"
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloaded with new env vars
    """
    get_settings.cache_clear()
