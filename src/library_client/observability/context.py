"""Context managers for tracing read-cache activity."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import logfire


@contextmanager
def trace_cache_operation(operation: str, key: tuple[Any, ...]) -> Iterator[Any]:
    """Context manager for tracing a cache load or invalidation."""
    with logfire.span(
        f"cache.{operation}",
        cache_operation=operation,
        cache_key="/".join(str(part) for part in key),
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("cache.error", str(e))
            raise
