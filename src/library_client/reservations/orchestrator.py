"""
Reservation mutation orchestrator.

Drives a book through its reservation lifecycle:

    AVAILABLE --reserve--> RESERVED --take--> TAKEN --return--> RETURNED
    RESERVED --cancel--> CANCELLED

Every action runs the same sequence, self-contained per call:

1. DISPATCH: bump the unread counter optimistically and send the request
2. SUCCESS: clear the book's error and invalidate reservations, books and the
   book's detail so dependent reads refetch
3. FAILURE: roll the counter back and record the classified error; cached
   reservations and guards are left untouched
4. SETTLE: resync the unread counter from the server

Mutations are never retried. Several may be in flight at once (reserving one
book while cancelling another); there is no lock between them, conflicts are
resolved by the backend and reported as errors. A caller that stops waiting
does not stop the mutation: it runs on its own task until the settle step.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..api import ApiError, LibraryBackend
from ..cache import QueryCache, QueryKeys
from ..models import Book, Reservation
from ..observability import trace_action
from .errors import ActionError, ActionNotAvailableError, classify_error
from .guards import ReservationAction
from .my_books import DEFAULT_PAGE_SIZE, MyBooksPage, StatusFilter, my_books_page
from .notifications import OptimisticNotificationCounter
from .picker import ReservationIndex, first_by_book, pick_current_reservations
from .result import Err, MutationResult, Ok
from .view import BookReservationView, build_book_view

logger = logging.getLogger(__name__)


class ReservationOrchestrator:
    """
    Entry point of the reservation layer for the presentation code.

    Args:
        backend: Backend operations (REST client or a test double)
        cache: Shared read cache; a private one is created when omitted
        counter: Unread-notification counter; built on ``cache`` when omitted
    """

    def __init__(
        self,
        backend: LibraryBackend,
        cache: QueryCache | None = None,
        counter: OptimisticNotificationCounter | None = None,
    ):
        self.backend = backend
        self.cache = cache if cache is not None else QueryCache()
        self.notifications = counter or OptimisticNotificationCounter(self.cache, backend)
        self._errors: dict[int, ActionError] = {}
        self._in_flight: set[asyncio.Task] = set()

    # =========================================================================
    # READS
    # =========================================================================

    async def user_reservations(self) -> list[Reservation]:
        return await self.cache.fetch(
            QueryKeys.MY_RESERVATIONS, self.backend.list_user_reservations
        )

    async def active_reservations(self) -> list[Reservation]:
        return await self.cache.fetch(
            QueryKeys.ACTIVE_RESERVATIONS, self.backend.list_active_reservations
        )

    async def books(self) -> list[Book]:
        return await self.cache.fetch(QueryKeys.BOOKS, self.backend.list_books)

    async def book(self, book_id: int) -> Book:
        return await self.cache.fetch(
            QueryKeys.book(book_id), lambda: self.backend.get_book(book_id)
        )

    async def current_reservations(self) -> ReservationIndex:
        """The most relevant reservation of every book the reader ever reserved."""
        return pick_current_reservations(await self.user_reservations())

    async def unread_notifications(self) -> int:
        return await self.notifications.load()

    async def my_books(
        self,
        status: StatusFilter = "all",
        query: str = "",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> MyBooksPage:
        """One page of the reader's book listing built from cached reservations and books."""
        reservations, books = await asyncio.gather(self.user_reservations(), self.books())
        return my_books_page(reservations, books, status, query, page, page_size)

    async def view(self, book_id: int) -> BookReservationView:
        """Build the reservation view of a book from the latest cached data."""
        book, active, history = await asyncio.gather(
            self.book(book_id),
            self.active_reservations(),
            self.user_reservations(),
        )
        return build_book_view(
            book,
            active=first_by_book(active).get(book_id),
            current=pick_current_reservations(history).get(book_id),
            last_error=self._errors.get(book_id),
        )

    def last_error(self, book_id: int) -> ActionError | None:
        return self._errors.get(book_id)

    def dismiss_error(self, book_id: int) -> None:
        self._errors.pop(book_id, None)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    @trace_action("reserve")
    async def reserve(self, book_id: int) -> MutationResult:
        return await self._dispatch(
            ReservationAction.RESERVE, book_id, lambda: self.backend.reserve(book_id)
        )

    @trace_action("take")
    async def take(self, reservation_id: int, book_id: int | None = None) -> MutationResult:
        return await self._dispatch(
            ReservationAction.TAKE,
            self._resolve_book_id(reservation_id, book_id),
            lambda: self.backend.take(reservation_id),
        )

    @trace_action("return")
    async def return_book(self, reservation_id: int, book_id: int | None = None) -> MutationResult:
        return await self._dispatch(
            ReservationAction.RETURN,
            self._resolve_book_id(reservation_id, book_id),
            lambda: self.backend.return_book(reservation_id),
        )

    @trace_action("cancel")
    async def cancel(self, reservation_id: int, book_id: int | None = None) -> MutationResult:
        return await self._dispatch(
            ReservationAction.CANCEL,
            self._resolve_book_id(reservation_id, book_id),
            lambda: self.backend.cancel(reservation_id),
        )

    async def perform(self, book_id: int, action: ReservationAction | str) -> MutationResult:
        """
        Run ``action`` on a book after checking its availability guard.

        Raises:
            ActionNotAvailableError: If the guard for ``action`` is false in
                the book's current view
        """
        action = ReservationAction(action)
        view = await self.view(book_id)
        if not view.availability.allows(action):
            raise ActionNotAvailableError(
                f"Cannot {action.value} book {book_id} in its current state"
            )

        if action == ReservationAction.RESERVE:
            return await self.reserve(book_id)

        # Guards for take/return/cancel imply an active reservation
        reservation_id = view.reservation_id
        if action == ReservationAction.TAKE:
            return await self.take(reservation_id, book_id=book_id)
        if action == ReservationAction.RETURN:
            return await self.return_book(reservation_id, book_id=book_id)
        return await self.cancel(reservation_id, book_id=book_id)

    async def drain(self) -> None:
        """Wait until every in-flight mutation has settled."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _resolve_book_id(self, reservation_id: int, book_id: int | None) -> int | None:
        """Book of a reservation: the caller's, else whatever the cached lists say."""
        if book_id is not None:
            return book_id
        for key in (QueryKeys.ACTIVE_RESERVATIONS, QueryKeys.MY_RESERVATIONS):
            for reservation in self.cache.get(key) or []:
                if reservation.id == reservation_id:
                    return reservation.book_id
        return None

    async def _dispatch(
        self,
        action: ReservationAction,
        book_id: int | None,
        call: Callable[[], Awaitable[Reservation | None]],
    ) -> MutationResult:
        task = asyncio.create_task(self._run(action, book_id, call))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        # Cancelling the caller must not cancel the rollback/resync sequence
        return await asyncio.shield(task)

    async def _run(
        self,
        action: ReservationAction,
        book_id: int | None,
        call: Callable[[], Awaitable[Reservation | None]],
    ) -> MutationResult:
        context = self.notifications.begin()
        try:
            try:
                reservation = await call()
            except Exception as e:
                self.notifications.rollback(context)
                if isinstance(e, ApiError):
                    logger.info("%s on book %s failed: %s", action.value, book_id, e)
                else:
                    logger.exception("Unexpected error during %s on book %s", action.value, book_id)

                error = classify_error(e)
                if book_id is not None:
                    self._errors[book_id] = error
                return Err(error=error)

            target = book_id
            if target is None and reservation is not None:
                target = reservation.book_id
            if target is not None:
                self._errors.pop(target, None)
            self._invalidate_after_change(target)
            logger.info("%s on book %s succeeded", action.value, target)
            return Ok(reservation=reservation)
        finally:
            await self.notifications.resync()

    def _invalidate_after_change(self, book_id: int | None) -> None:
        self.cache.invalidate(QueryKeys.RESERVATIONS)
        self.cache.invalidate(QueryKeys.BOOKS)
        if book_id is not None:
            self.cache.invalidate(QueryKeys.book(book_id))
        else:
            # Unknown target: drop every book detail
            self.cache.invalidate(QueryKeys.book_details())
