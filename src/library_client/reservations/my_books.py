"""
The reader's "my books" listing.

One entry per book the reader ever reserved, showing the most relevant
reservation, newest first, with filtering by derived status, a text search
over title and author, and pagination.
"""

import math
from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import Book, MyBookStatus, Reservation
from .picker import pick_current_reservations
from .status import resolve_my_book_status

DEFAULT_PAGE_SIZE = 8
UNTITLED = "Untitled"
UNKNOWN_AUTHOR = "—"

StatusFilter = MyBookStatus | Literal["all"]


class MyBookEntry(BaseModel):
    """A book in the listing together with its current reservation."""

    book_id: int
    title: str
    author: str
    cover_url: str | None = None
    status: MyBookStatus
    reservation: Reservation

    model_config = ConfigDict(frozen=True, use_enum_values=True)


class MyBooksPage(BaseModel):
    """One page of the filtered listing."""

    items: list[MyBookEntry]
    total: int = Field(..., description="Entries matching the filter and query")
    page: int
    page_size: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def build_my_books(
    reservations: Iterable[Reservation], books: Iterable[Book]
) -> list[MyBookEntry]:
    """Entries of every reserved book, ordered by reservation timestamp, newest first."""
    book_map = {book.id: book for book in books}
    entries = []
    for reservation in pick_current_reservations(reservations).most_recent_first():
        book = book_map.get(reservation.book_id)
        entries.append(
            MyBookEntry(
                book_id=reservation.book_id,
                title=reservation.book_title or (book.title if book else "") or UNTITLED,
                author=(book.author if book else None) or UNKNOWN_AUTHOR,
                cover_url=book.cover_url if book else None,
                status=resolve_my_book_status(reservation, book.status if book else None),
                reservation=reservation,
            )
        )
    return entries


def filter_my_books(
    entries: Iterable[MyBookEntry], status: StatusFilter = "all", query: str = ""
) -> list[MyBookEntry]:
    """Keep entries with the given status whose title or author contains ``query``."""
    selected = [e for e in entries if status == "all" or e.status == status]

    needle = query.strip().lower()
    if not needle:
        return selected
    return [e for e in selected if needle in e.title.lower() or needle in e.author.lower()]


def my_books_page(
    reservations: Iterable[Reservation],
    books: Iterable[Book],
    status: StatusFilter = "all",
    query: str = "",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> MyBooksPage:
    """
    Build one page of the "my books" listing.

    Args:
        reservations: The reader's full reservation history
        books: Catalog records used for titles, authors and book status
        status: Derived status to keep, or ``"all"``
        query: Case-insensitive search over title and author
        page: Requested page, clamped to the available range
        page_size: Entries per page
    """
    if page_size < 1:
        raise ValueError("Page size must be >= 1")

    matching = filter_my_books(build_my_books(reservations, books), status, query)
    total_pages = max(1, math.ceil(len(matching) / page_size))
    current = min(max(page, 1), total_pages)
    start = (current - 1) * page_size

    return MyBooksPage(
        items=matching[start : start + page_size],
        total=len(matching),
        page=current,
        page_size=page_size,
        total_pages=total_pages,
    )
