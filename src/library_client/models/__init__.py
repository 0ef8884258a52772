"""
Library client models.

Pydantic v2 models for the data the client reads from the backend:
- Book: catalog entries with availability
- Reservation: the user's reservation records
- MyBookStatus: client-derived lifecycle status of a reservation
"""

from .book import IN_HAND_STATUSES, Book, BookStatus
from .reservation import MyBookStatus, Reservation, ReservationStatus, to_epoch_millis

__all__ = [
    "IN_HAND_STATUSES",
    "Book",
    "BookStatus",
    "MyBookStatus",
    "Reservation",
    "ReservationStatus",
    "to_epoch_millis",
]
