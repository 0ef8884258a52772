"""
Classification of failed reservation actions.

A failed mutation is classified exactly once, at the mutation boundary, into
an ``ActionError`` that the presentation layer can show as is. Precedence:

1. LIMIT_EXCEEDED - the server message mentions the reservation maximum
2. CONFLICT - HTTP 409
3. VALIDATION - HTTP 400 with a message, shown verbatim
4. GENERIC - anything else
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..api.errors import ApiError

LIMIT_MARKERS = ("maximum number of reserved books", "maximum number")

LIMIT_EXCEEDED_MESSAGE = "Reservation limit reached."
CONFLICT_MESSAGE = "Book is no longer available."
GENERIC_MESSAGE = "Action failed. Please try again."


class ErrorKind(str, Enum):
    LIMIT_EXCEEDED = "limit_exceeded"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    GENERIC = "generic"


class ActionError(BaseModel):
    """A classified, user-presentable failure of a reservation action."""

    kind: ErrorKind = Field(..., description="Error category")
    message: str = Field(..., description="Message to show to the reader")
    status_code: int | None = Field(
        default=None,
        description="HTTP status of the failed request, if one was received",
    )

    model_config = ConfigDict(frozen=True)


class ActionNotAvailableError(ValueError):
    """An action was requested while its availability guard is false."""


def extract_server_message(payload: Any) -> str:
    """
    Pull the human-readable message out of an error body.

    The body itself when it is a string, else its ``message`` field, else its
    ``error`` field, else an empty string.
    """
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        message = payload.get("message")
        if message is None:
            message = payload.get("error")
        return "" if message is None else str(message)
    return ""


def classify_error(error: BaseException) -> ActionError:
    """
    Classify a failed mutation.

    Args:
        error: Exception raised by the backend call

    Returns:
        The ``ActionError`` to surface; raw transport errors never leave
        the mutation boundary.
    """
    status_code = error.status_code if isinstance(error, ApiError) else None
    raw_message = extract_server_message(error.payload) if isinstance(error, ApiError) else ""
    normalized = raw_message.lower()

    if any(marker in normalized for marker in LIMIT_MARKERS):
        return ActionError(
            kind=ErrorKind.LIMIT_EXCEEDED,
            message=LIMIT_EXCEEDED_MESSAGE,
            status_code=status_code,
        )

    if status_code == 409:
        return ActionError(kind=ErrorKind.CONFLICT, message=CONFLICT_MESSAGE, status_code=409)

    if status_code == 400 and raw_message:
        return ActionError(kind=ErrorKind.VALIDATION, message=raw_message, status_code=400)

    return ActionError(kind=ErrorKind.GENERIC, message=GENERIC_MESSAGE, status_code=status_code)
