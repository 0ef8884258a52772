"""Decorators for tracing reservation mutations."""

import functools
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire


def trace_action(action_name: str):
    """Decorator to trace a reservation mutation from dispatch to settle."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with logfire.span(
                f"reservation.action.{action_name}",
                action_name=action_name,
            ) as span:
                start_time = datetime.now()

                # Target ids (book_id / reservation_id) passed to the action
                _add_attributes(span, "input", kwargs)
                for position, value in enumerate(args[1:]):
                    if isinstance(value, int):
                        span.set_attribute(f"input.arg{position}", value)

                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("action.raised", str(e))
                    raise

                span.set_attribute(
                    "action.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                )
                _add_result_attributes(span, result)
                return result

        return wrapper

    return decorator


def _add_attributes(span, prefix: str, data: dict):
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)


def _add_result_attributes(span, result: Any):
    """Record whether the mutation succeeded and how it was classified."""
    is_ok = getattr(result, "is_ok", None)
    if is_ok is None:
        return
    span.set_attribute("action.success", is_ok)
    error = getattr(result, "error", None)
    if error is not None:
        span.set_attribute("action.error_kind", str(getattr(error, "kind", "")))
        span.set_attribute("action.error_status", getattr(error, "status_code", None) or 0)
