"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Share one settings object between the API server and the client core

Collaborators:
  - main.py: reads settings for CORS, lifespan and dev seed
  - container.py: decides in-memory vs Postgres repositories
  - identity/auth_users.py: JWT secret and TTL
  - client/api_client.py: base URL, timeout and retry policy

Constraints:
  - No business logic — pure configuration

Notes:
  - Singleton via lru_cache
  - Empty database_url means in-memory repositories (dev/test)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        database_url: PostgreSQL connection string (empty = in-memory)
        allowed_origins: Comma-separated CORS origins
        log_level: Logging level name
        log_json: Emit JSON logs (default: True)
        jwt_secret: Secret for signing JWT access tokens
        jwt_access_ttl_minutes: Access token TTL in minutes
        jwt_cookie_name: Cookie name for access token
        jwt_cookie_secure: Set Secure on auth cookies
        reset_code_ttl_minutes: Lifetime of a password reset code
        reset_code_length: Digits of the numeric reset code
        reset_code_max_attempts: Failed redemptions before a code is burned
        reset_notifier_webhook_url: Mail relay that delivers reset codes
        default_page_size: Complaint list page size (default: 15)
        max_page_size: Upper bound for per_page
        api_base_url: Base URL the client core talks to
        api_timeout_seconds: httpx timeout for client requests
        credential_path: File used by FileCredentialStore
    """

    # Environment
    app_env: str = "development"

    # Database (empty => in-memory adapters)
    database_url: str = ""

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 60
    jwt_cookie_name: str = "access_token"
    jwt_cookie_secure: bool = False

    # Password recovery
    reset_code_ttl_minutes: int = 15
    reset_code_length: int = 6
    reset_code_max_attempts: int = 5
    reset_notifier_webhook_url: str = ""

    # Listing
    default_page_size: int = 15
    max_page_size: int = 100

    # Database - Connection Pool
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Retry/Resilience
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 8.0

    # Client core
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 15.0
    credential_path: str = ".rentalhub/credential"

    # Dev Tools (Backend Safe)
    dev_seed_users: bool = False
    dev_seed_password: str = "password123"

    @field_validator("reset_code_length")
    @classmethod
    def reset_code_length_valid(cls, v: int) -> int:
        if v < 4 or v > 10:
            raise ValueError("reset_code_length must be between 4 and 10")
        return v

    @field_validator("reset_code_ttl_minutes", "reset_code_max_attempts")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("retry_max_attempts")
    @classmethod
    def retry_attempts_valid(cls, v: int) -> int:
        # R: al menos el intento original
        if v < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_valid(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be a standard logging level")
        return level

    def validate_page_params(self) -> None:
        """
        Cross-field validation: default page size within bounds.
        Called explicitly after instantiation.
        """
        if not 0 < self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) must be between 1 "
                f"and max_page_size ({self.max_page_size})"
            )

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.jwt_cookie_secure:
            raise ValueError("JWT_COOKIE_SECURE must be true in production")
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required in production")
        if not self.reset_notifier_webhook_url.strip():
            raise ValueError("RESET_NOTIFIER_WEBHOOK_URL is required in production")
        if self.dev_seed_users:
            raise ValueError("DEV_SEED_USERS cannot be enabled in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    settings = Settings()
    settings.validate_page_params()
    return settings
