"""Configuration for Logfire observability."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ObservabilityConfig(BaseSettings):
    """
    Logfire settings, read from ``LOGFIRE_*`` variables.

    Tracing is opt-in: nothing is configured unless ``LOGFIRE_ENABLED`` is
    true, so tests and plain CLI runs never talk to Logfire.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOGFIRE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    token: str = ""
    service_name: str = "library-client"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    enabled: bool = False
    console_output: bool = False
    send_to_logfire: bool = False


class ProductionConfig(ObservabilityConfig):
    """Production: ship spans, keep the console quiet."""

    enabled: bool = True
    send_to_logfire: bool = True


class DevelopmentConfig(ObservabilityConfig):
    """Development: spans on the console, no token required."""

    console_output: bool = True


def get_environment_config() -> ObservabilityConfig:
    """Get configuration based on the ENVIRONMENT variable."""
    env = os.getenv("ENVIRONMENT", "development")

    if env == "production":
        return ProductionConfig()
    if env == "development":
        return DevelopmentConfig()
    return ObservabilityConfig()
