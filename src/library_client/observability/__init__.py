"""Logfire observability for the library reservations client."""

import logging

import logfire

from .config import ObservabilityConfig, get_environment_config
from .context import trace_cache_operation
from .decorators import trace_action

logger = logging.getLogger(__name__)


def initialize_observability(config: ObservabilityConfig | None = None) -> None:
    """Initialize Logfire with configuration."""
    config = config or get_environment_config()

    if not config.enabled:
        logger.debug("Observability disabled via configuration")
        return

    logfire.configure(
        token=config.token or None,
        service_name=config.service_name,
        environment=config.environment,
        send_to_logfire=config.send_to_logfire,
        console=None if config.console_output else False,
    )


__all__ = [
    "ObservabilityConfig",
    "initialize_observability",
    "trace_action",
    "trace_cache_operation",
]
