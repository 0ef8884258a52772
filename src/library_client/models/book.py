"""
Book model for the library reservations client.

A ``Book`` is the client-visible projection of a catalog entry. Its
``status`` reflects availability as the backend last reported it and may
transiently disagree with the user's reservation records, because the backend
updates the two independently.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BookStatus(str, Enum):
    """Availability of a book as reported by the catalog."""

    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    TAKEN = "TAKEN"
    IN_YOUR_HANDS = "IN_YOUR_HANDS"
    RETURNED = "RETURNED"


# Statuses meaning the copy is physically with the reader
IN_HAND_STATUSES = (BookStatus.IN_YOUR_HANDS, BookStatus.TAKEN)


class Book(BaseModel):
    """
    Represents a book in the library catalog.

    Only ``id`` and ``status`` matter for reservation logic; the remaining
    fields are carried for listings.
    """

    id: int = Field(
        ...,
        description="Catalog identifier of the book",
        examples=[1, 42],
    )

    title: str = Field(
        default="",
        description="The title of the book",
        examples=["The Master and Margarita"],
    )

    author: str | None = Field(
        default=None,
        description="Display name of the author",
    )

    status: BookStatus | None = Field(
        default=None,
        description="Availability reported by the catalog; absent means available",
    )

    cover_url: str | None = Field(
        default=None,
        description="Cover image URL as returned by the backend",
    )

    category: str | None = Field(
        default=None,
        description="Catalog category name",
    )

    description: str | None = Field(
        default=None,
        description="Free-text annotation",
    )

    location: str | None = Field(
        default=None,
        description="Shelf location of the physical copy",
    )

    average_rating: float | None = Field(
        default=None,
        description="Average review rating",
        ge=0.0,
        le=5.0,
    )

    review_count: int | None = Field(
        default=None,
        description="Number of reviews",
        ge=0,
    )

    @property
    def effective_status(self) -> BookStatus:
        """Availability with the backend's implicit default applied."""
        return BookStatus(self.status) if self.status else BookStatus.AVAILABLE

    @property
    def is_in_hand(self) -> bool:
        """Whether the catalog reports the copy as being with the reader."""
        return self.status in IN_HAND_STATUSES

    model_config = ConfigDict(
        # Backend payloads use camelCase (coverUrl, averageRating)
        alias_generator=to_camel,
        populate_by_name=True,
        # Snapshot of a query result, never edited locally
        frozen=True,
        use_enum_values=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 42,
                "title": "The Master and Margarita",
                "author": "Mikhail Bulgakov",
                "status": "AVAILABLE",
                "coverUrl": "/covers/42.jpg",
                "category": "Classics",
            }
        },
    )
