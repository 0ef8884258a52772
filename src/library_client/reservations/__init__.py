"""
Reservation lifecycle layer.

Turns the reader's raw reservation history into one current reservation per
book, derives a lifecycle status from it, and drives reserve/take/return/
cancel actions while keeping the local read cache coherent with the backend.
"""

from .errors import ActionError, ActionNotAvailableError, ErrorKind, classify_error
from .guards import ActionAvailability, ReservationAction, compute_availability
from .my_books import MyBookEntry, MyBooksPage, my_books_page
from .notifications import OptimisticNotificationCounter, RollbackContext
from .orchestrator import ReservationOrchestrator
from .ordering import STATUS_PRIORITY, more_relevant, reservation_timestamp
from .picker import ReservationIndex, pick_current_reservations
from .result import Err, MutationResult, Ok
from .status import resolve_my_book_status
from .view import BookReservationView, build_book_view

__all__ = [
    "STATUS_PRIORITY",
    "ActionAvailability",
    "ActionError",
    "ActionNotAvailableError",
    "BookReservationView",
    "Err",
    "ErrorKind",
    "MutationResult",
    "MyBookEntry",
    "MyBooksPage",
    "Ok",
    "OptimisticNotificationCounter",
    "ReservationAction",
    "ReservationIndex",
    "ReservationOrchestrator",
    "RollbackContext",
    "build_book_view",
    "classify_error",
    "compute_availability",
    "more_relevant",
    "my_books_page",
    "pick_current_reservations",
    "reservation_timestamp",
    "resolve_my_book_status",
]
