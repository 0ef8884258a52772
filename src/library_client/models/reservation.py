"""
Reservation models for the library reservations client.

A ``Reservation`` is the backend's record of a user's claim on a book through
its borrow lifecycle:

    AVAILABLE --reserve--> RESERVED --take--> TAKEN --return--> RETURNED
    RESERVED --cancel--> CANCELLED

Records are created and mutated only by the backend; the client holds
immutable snapshots of query results. ``MyBookStatus`` is the client-derived
summary of a reservation's progress and is never persisted.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReservationStatus(str, Enum):
    """Status of a reservation record as stored by the backend."""

    PENDING_RESERVED = "PENDING_RESERVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    RETURNED = "RETURNED"


class MyBookStatus(str, Enum):
    """Lifecycle status of a book from the reader's point of view."""

    TAKEN = "TAKEN"
    RESERVED = "RESERVED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class Reservation(BaseModel):
    """
    Represents one reservation record of the current user.

    Timestamps are optional: ``reserved_at`` is set when the reservation is
    made, ``taken_at`` when the book is picked up and ``returned_at`` when it
    is brought back. The backend does not always keep ``status`` in step with
    them.
    """

    id: int = Field(
        ...,
        description="Backend identifier of the reservation",
    )

    book_id: int = Field(
        ...,
        description="Identifier of the reserved book",
    )

    book_title: str | None = Field(
        default=None,
        description="Title denormalized into the reservation payload",
    )

    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING_RESERVED,
        description="Backend status of the reservation",
    )

    reserved_at: datetime | None = Field(
        default=None,
        description="When the reservation was made",
    )

    taken_at: datetime | None = Field(
        default=None,
        description="When the book was picked up",
    )

    returned_at: datetime | None = Field(
        default=None,
        description="When the book was returned",
    )

    @property
    def is_taken(self) -> bool:
        return self.taken_at is not None

    @property
    def is_returned(self) -> bool:
        return self.returned_at is not None

    @property
    def latest_event_at(self) -> datetime | None:
        """Most advanced lifecycle timestamp: returned, else taken, else reserved."""
        return self.returned_at or self.taken_at or self.reserved_at

    model_config = ConfigDict(
        # Backend payloads use camelCase (bookId, reservedAt)
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 10,
                "bookId": 5,
                "bookTitle": "The Master and Margarita",
                "status": "PENDING_RESERVED",
                "reservedAt": "2024-01-01T00:00:00Z",
            }
        },
    )


def to_epoch_millis(value: datetime | None) -> int:
    """
    Convert a timestamp to milliseconds since the epoch.

    Missing timestamps map to 0. Naive datetimes are read as UTC so that
    payloads with and without an offset compare consistently.
    """
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
