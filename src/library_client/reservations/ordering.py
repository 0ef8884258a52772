"""Ordering helpers used to choose between reservations of the same book."""

from ..models import MyBookStatus, Reservation, to_epoch_millis
from .status import resolve_my_book_status

STATUS_PRIORITY: dict[MyBookStatus, int] = {
    MyBookStatus.RETURNED: 4,
    MyBookStatus.TAKEN: 3,
    MyBookStatus.RESERVED: 2,
    MyBookStatus.CANCELLED: 1,
}


def reservation_timestamp(reservation: Reservation) -> int:
    """Epoch milliseconds of ``returned_at``, else ``taken_at``, else ``reserved_at``, else 0."""
    return to_epoch_millis(reservation.latest_event_at)


def status_priority(reservation: Reservation) -> int:
    """Priority of the reservation's derived status, without book context."""
    return STATUS_PRIORITY[MyBookStatus(resolve_my_book_status(reservation))]


def relevance_key(reservation: Reservation) -> tuple[int, int, int]:
    """
    Sort key of the relevance order: timestamp, then status priority, then id.

    A larger key is more relevant. Because the key is a total order, the most
    relevant reservation of a group does not depend on the order the group
    was received in.
    """
    return (reservation_timestamp(reservation), status_priority(reservation), reservation.id)


def more_relevant(current: Reservation, candidate: Reservation) -> Reservation:
    """Return whichever of two reservations of the same book is more relevant."""
    if relevance_key(candidate) >= relevance_key(current):
        return candidate
    return current
