"""
Reduction of a reservation history to one current reservation per book.

The backend returns every reservation the user ever made, possibly several
per book and in no guaranteed order (pagination, concurrent fetches). The
picker keeps, per book id, the reservation that wins the relevance order
defined in ``ordering``.
"""

from collections.abc import Iterable, Iterator

from ..models import Reservation
from .ordering import more_relevant, reservation_timestamp


class ReservationIndex:
    """
    Mapping of book id to a single reservation.

    ``get`` returns ``None`` for books without a reservation; ``[]`` raises
    ``KeyError``. Iteration follows first-insertion order of book ids.
    """

    def __init__(self) -> None:
        self._by_book: dict[int, Reservation] = {}

    def put(self, reservation: Reservation) -> None:
        """Store ``reservation`` unconditionally under its book id."""
        self._by_book[reservation.book_id] = reservation

    def merge(self, reservation: Reservation) -> Reservation:
        """
        Keep the more relevant of the stored and the given reservation.

        Returns:
            The reservation now stored for the book.
        """
        previous = self._by_book.get(reservation.book_id)
        chosen = reservation if previous is None else more_relevant(previous, reservation)
        self._by_book[reservation.book_id] = chosen
        return chosen

    def get(self, book_id: int) -> Reservation | None:
        return self._by_book.get(book_id)

    def __getitem__(self, book_id: int) -> Reservation:
        return self._by_book[book_id]

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._by_book

    def __len__(self) -> int:
        return len(self._by_book)

    def __iter__(self) -> Iterator[int]:
        return iter(self._by_book)

    def book_ids(self) -> list[int]:
        return list(self._by_book)

    def reservations(self) -> list[Reservation]:
        return list(self._by_book.values())

    def most_recent_first(self) -> list[Reservation]:
        """Stored reservations ordered by lifecycle timestamp, newest first."""
        return sorted(self._by_book.values(), key=reservation_timestamp, reverse=True)

    def __repr__(self) -> str:
        return f"ReservationIndex({self._by_book!r})"


def pick_current_reservations(reservations: Iterable[Reservation]) -> ReservationIndex:
    """
    Pick the current reservation of every book in ``reservations``.

    Args:
        reservations: Full reservation history in any order

    Returns:
        Index with exactly one reservation per distinct book id
    """
    index = ReservationIndex()
    for reservation in reservations:
        index.merge(reservation)
    return index


def first_by_book(reservations: Iterable[Reservation]) -> ReservationIndex:
    """Index the first reservation listed for each book, ignoring later ones."""
    index = ReservationIndex()
    for reservation in reservations:
        if reservation.book_id not in index:
            index.put(reservation)
    return index
