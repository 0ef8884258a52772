"""Availability of reservation actions for a single book."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..models import BookStatus, Reservation


class ReservationAction(str, Enum):
    """User intents driving a book through its reservation lifecycle."""

    RESERVE = "reserve"
    TAKE = "take"
    RETURN = "return"
    CANCEL = "cancel"


class ActionAvailability(BaseModel):
    """Which actions the reader may trigger for a book right now."""

    can_reserve: bool = False
    can_take: bool = False
    can_return: bool = False
    can_cancel: bool = False

    def allows(self, action: ReservationAction) -> bool:
        return {
            ReservationAction.RESERVE: self.can_reserve,
            ReservationAction.TAKE: self.can_take,
            ReservationAction.RETURN: self.can_return,
            ReservationAction.CANCEL: self.can_cancel,
        }[ReservationAction(action)]

    model_config = ConfigDict(frozen=True)


def compute_availability(
    reservation: Reservation | None, book_status: BookStatus | str | None
) -> ActionAvailability:
    """
    Evaluate the action guards from the current reservation and book status.

    - reserve: the book is available and the reader holds no reservation
    - take: a reservation exists that has not been picked up
    - return: a reservation exists that was picked up but not returned
    - cancel: same condition as take

    At most one of reserve, take and return is allowed at a time.

    Args:
        reservation: The reader's active reservation of the book, if any
        book_status: Catalog status; ``None`` counts as available
    """
    status = book_status or BookStatus.AVAILABLE
    if reservation is None:
        return ActionAvailability(can_reserve=status == BookStatus.AVAILABLE)

    not_taken = reservation.taken_at is None
    return ActionAvailability(
        can_reserve=False,
        can_take=not_taken,
        can_return=not not_taken and reservation.returned_at is None,
        can_cancel=not_taken,
    )
