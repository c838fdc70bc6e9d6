"""Settings for the API client used by the tree store."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Connection settings, read from ``PROBLEMBOX_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROBLEMBOX_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = Field(default="http://localhost:8000", description="Backend base URL")
    api_token: str = Field(default="", description="Optional Bearer token")
    api_timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    max_retries: int = Field(
        default=3, ge=1, description="Attempts for the bootstrap fetch (mutations are never retried)"
    )
    retry_base_delay: float = Field(
        default=0.5, ge=0, description="Backoff base in seconds; doubles per attempt"
    )
