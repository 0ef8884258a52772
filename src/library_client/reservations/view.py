"""Read-only view model of one book's reservation state."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models import Book, BookStatus, MyBookStatus, Reservation
from .errors import ActionError
from .guards import ActionAvailability, compute_availability
from .status import resolve_my_book_status


class BookReservationView(BaseModel):
    """
    What the presentation layer shows for a book.

    Derived from the cached book, the reader's active reservation and the
    reader's reservation history; rebuilt whenever any of them change.
    """

    book_id: int
    book_status: BookStatus
    status: MyBookStatus | None = Field(
        default=None,
        description="Derived lifecycle status; None if the reader never reserved the book",
    )
    reservation_id: int | None = Field(
        default=None,
        description="Active reservation that take/return/cancel act on",
    )
    reserved_at: datetime | None = None
    taken_at: datetime | None = None
    returned_at: datetime | None = None
    can_reserve: bool = False
    can_take: bool = False
    can_return: bool = False
    can_cancel: bool = False
    last_error: ActionError | None = None

    @property
    def availability(self) -> ActionAvailability:
        return ActionAvailability(
            can_reserve=self.can_reserve,
            can_take=self.can_take,
            can_return=self.can_return,
            can_cancel=self.can_cancel,
        )

    model_config = ConfigDict(frozen=True, use_enum_values=True)


def build_book_view(
    book: Book,
    active: Reservation | None,
    current: Reservation | None,
    last_error: ActionError | None = None,
) -> BookReservationView:
    """
    Combine the sources of a book's reservation state into a view.

    Args:
        book: Latest catalog record of the book
        active: The reader's active reservation of the book; drives the guards
        current: Most relevant reservation from the full history; drives the
            derived status
        last_error: Error left by the last failed action on this book
    """
    shown = current or active
    status = resolve_my_book_status(shown, book.status) if shown is not None else None
    guards = compute_availability(active, book.effective_status)

    return BookReservationView(
        book_id=book.id,
        book_status=book.effective_status,
        status=status,
        reservation_id=active.id if active is not None else None,
        reserved_at=shown.reserved_at if shown is not None else None,
        taken_at=shown.taken_at if shown is not None else None,
        returned_at=shown.returned_at if shown is not None else None,
        can_reserve=guards.can_reserve,
        can_take=guards.can_take,
        can_return=guards.can_return,
        can_cancel=guards.can_cancel,
        last_error=last_error,
    )
