"""Server configuration, read from the environment and ``.env``."""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_SECRET = "dev-insecure-key-change-me"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Configuration is unsafe for the current environment."""


class Settings(BaseSettings):
    """Problem Box API settings.

    Every field maps to an upper-case environment variable of the same name
    (``DATABASE_URL``, ``AUTH_ENABLED`` ...).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(default=Environment.DEVELOPMENT)

    # Comma-separated; "*" is refused by get_cors_origins.
    cors_allowed_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    database_url: str = Field(
        default="sqlite:///./problembox.db",
        description="SQLAlchemy URL; SQLite for local use, PostgreSQL in deployment",
    )
    # Pool settings apply to PostgreSQL only.
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is replaced")

    jwt_secret_key: str = Field(default=_DEV_SECRET, description="HS256 signing key for bearer tokens")
    jwt_algorithm: str = Field(default="HS256")
    token_expire_hours: int = Field(default=24 * 7, description="Lifetime of tokens from login/register")
    auth_enabled: bool = Field(
        default=False,
        description="When false every request acts as default_user_id",
    )
    default_user_id: str = Field(default="local-user")

    rate_limit_per_minute: int = Field(default=120, description="Per-client request budget; 0 disables")

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'text'")

    def get_cors_origins(self) -> List[str]:
        """Parsed origin list. Raises ValueError on a wildcard."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("Wildcard CORS (*) is not allowed; list origins in CORS_ALLOWED_ORIGINS")
        return origins

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level. Must be one of: {list(_LOG_LEVELS)}")
        return level

    def validate_production_config(self) -> None:
        """Refuse to start in production with development defaults.

        Raises:
            ConfigurationError: listing every problem found, production only.
        """
        if self.environment != Environment.PRODUCTION:
            return

        problems: List[str] = []
        if self.jwt_secret_key == _DEV_SECRET:
            problems.append("JWT_SECRET_KEY still has the development default (openssl rand -hex 32)")
        if not self.auth_enabled:
            problems.append("AUTH_ENABLED must be true")
        local = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS contains local origins: {local}")

        if problems:
            raise ConfigurationError("Insecure production configuration:\n  - " + "\n  - ".join(problems))


settings = Settings()
