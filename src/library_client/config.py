"""Configuration management for the library reservations client.

Settings are loaded from the environment (``LIBRARY_CLIENT_*``) and an
optional ``.env`` file, validated with Pydantic v2:
1. Backend connection - base URL, bearer token, request timeout
2. Read cache - time-to-live for cached query results
3. Presentation - page size of the "my books" listing
4. Development - debug flag and log level
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """Client configuration.

    The client talks to a single REST backend. Everything needed to reach it,
    and to keep the local read model fresh, lives here.
    """

    model_config = SettingsConfigDict(
        # LIBRARY_CLIENT_API_BASE_URL, LIBRARY_CLIENT_ACCESS_TOKEN, ...
        env_prefix="LIBRARY_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Backend Connection ===

    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the library REST API",
        pattern=r"^https?://",
    )

    access_token: str | None = Field(
        default=None,
        description="Bearer token sent with every request",
        # Sensitive data - loaded from environment only
        repr=False,
    )

    request_timeout: float = Field(
        default=10.0,
        description="Transport timeout for a single request in seconds",
        gt=0,
    )

    # === Read Cache ===

    cache_ttl: int = Field(
        default=60,
        description="Seconds a cached query result stays fresh (0 disables expiry)",
        ge=0,
    )

    # === Presentation ===

    my_books_page_size: int = Field(
        default=8,
        description="Number of entries per page in the my-books listing",
        ge=1,
        le=100,
    )

    # === Development ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging of requests and cache activity",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        return v.strip().rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    @property
    def auth_headers(self) -> dict[str, str]:
        """Headers carrying the bearer token, empty when no token is set."""
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get or create the process-wide configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = ClientConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
