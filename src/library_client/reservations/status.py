"""Lifecycle status derivation for a single reservation."""

from ..models import IN_HAND_STATUSES, BookStatus, MyBookStatus, Reservation, ReservationStatus


def resolve_my_book_status(
    reservation: Reservation, book_status: BookStatus | str | None = None
) -> MyBookStatus:
    """
    Derive the reader-facing status of a reservation.

    Rules are checked in order and the first match wins:

    1. ``returned_at`` is set or the record is ``RETURNED`` -> ``RETURNED``
    2. record is ``COMPLETED`` but the book is not in the reader's hands
       -> ``RETURNED``
    3. ``taken_at`` is set or the record is ``COMPLETED`` -> ``TAKEN``
    4. record is ``CANCELLED`` or ``EXPIRED`` -> ``CANCELLED``
    5. otherwise -> ``RESERVED``

    Rule 2 compensates for the backend leaving a reservation ``COMPLETED``
    after the copy was already returned and the book record updated. When no
    book status is known the book counts as not in hand, so the rule applies.

    Args:
        reservation: Reservation snapshot
        book_status: Current catalog status of the reserved book, if known

    Returns:
        The derived ``MyBookStatus``; the function is total.
    """
    in_hand = book_status in IN_HAND_STATUSES

    if reservation.returned_at is not None or reservation.status == ReservationStatus.RETURNED:
        return MyBookStatus.RETURNED

    if reservation.status == ReservationStatus.COMPLETED and not in_hand:
        return MyBookStatus.RETURNED

    if reservation.taken_at is not None or reservation.status == ReservationStatus.COMPLETED:
        return MyBookStatus.TAKEN

    if reservation.status in (ReservationStatus.CANCELLED, ReservationStatus.EXPIRED):
        return MyBookStatus.CANCELLED

    return MyBookStatus.RESERVED
