"""Test configuration and fixtures for the library reservations client.

Fixtures provided here:
1. Configuration isolation - every test starts from a clean LIBRARY_CLIENT_* environment
2. FakeBackend - an in-memory backend with failure injection and call gating
3. Orchestrator wiring - cache, counter and orchestrator over the fake backend
"""

import asyncio
import os
from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest

from library_client.api import ApiError
from library_client.cache import QueryCache, QueryKeys
from library_client.config import ClientConfig, reset_config
from library_client.models import Book, BookStatus, Reservation, ReservationStatus
from library_client.reservations import ReservationOrchestrator


def ts(value: str) -> datetime:
    """Parse an ISO date or datetime as UTC."""
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def make_reservation(id: int, book_id: int = 1, **fields: Any) -> Reservation:
    """Build a reservation; timestamp fields accept ISO strings."""
    for name in ("reserved_at", "taken_at", "returned_at"):
        if isinstance(fields.get(name), str):
            fields[name] = ts(fields[name])
    return Reservation(id=id, book_id=book_id, **fields)


class FakeBackend:
    """
    In-memory stand-in for the library REST API.

    Every successful mutation emits one notification, as the real backend
    does. ``fail_next`` makes the next call of an operation raise, and
    ``hold`` parks calls of an operation until the returned event is set.
    """

    def __init__(self) -> None:
        self.books: dict[int, Book] = {}
        self.reservations: dict[int, Reservation] = {}
        self.unread = 0
        self.calls: list[tuple[str, Any]] = []
        self._failures: dict[str, list[BaseException]] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._next_id = 100

    # === Test controls ===

    def add_book(self, book_id: int, status: BookStatus = BookStatus.AVAILABLE, **fields) -> Book:
        title = fields.pop("title", f"Book {book_id}")
        book = Book(id=book_id, status=status, title=title, **fields)
        self.books[book_id] = book
        return book

    def add_reservation(self, reservation: Reservation) -> Reservation:
        self.reservations[reservation.id] = reservation
        return reservation

    def fail_next(self, operation: str, error: BaseException) -> None:
        self._failures.setdefault(operation, []).append(error)

    def hold(self, operation: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[operation] = gate
        return gate

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    async def _enter(self, operation: str, argument: Any = None) -> None:
        self.calls.append((operation, argument))
        gate = self._gates.get(operation)
        if gate is not None:
            await gate.wait()
        failures = self._failures.get(operation)
        if failures:
            raise failures.pop(0)

    def _store(self, reservation: Reservation, book_status: BookStatus) -> Reservation:
        self.reservations[reservation.id] = reservation
        book = self.books[reservation.book_id]
        self.books[book.id] = book.model_copy(update={"status": book_status})
        self.unread += 1
        return reservation

    # === LibraryBackend ===

    async def list_user_reservations(self) -> list[Reservation]:
        await self._enter("list_user_reservations")
        return list(self.reservations.values())

    async def list_active_reservations(self) -> list[Reservation]:
        await self._enter("list_active_reservations")
        return [
            r
            for r in self.reservations.values()
            if r.status == ReservationStatus.PENDING_RESERVED
            or (r.status == ReservationStatus.COMPLETED and r.returned_at is None)
        ]

    async def list_books(self) -> list[Book]:
        await self._enter("list_books")
        return list(self.books.values())

    async def get_book(self, book_id: int) -> Book:
        await self._enter("get_book", book_id)
        if book_id not in self.books:
            raise ApiError("not found", status_code=404, payload={"message": "Book not found"})
        return self.books[book_id]

    async def reserve(self, book_id: int) -> Reservation:
        await self._enter("reserve", book_id)
        self._next_id += 1
        reservation = Reservation(
            id=self._next_id,
            book_id=book_id,
            status=ReservationStatus.PENDING_RESERVED,
            reserved_at=datetime.now(timezone.utc),
        )
        return self._store(reservation, BookStatus.RESERVED)

    async def take(self, reservation_id: int) -> Reservation:
        await self._enter("take", reservation_id)
        reservation = self.reservations[reservation_id].model_copy(
            update={"status": ReservationStatus.COMPLETED, "taken_at": datetime.now(timezone.utc)}
        )
        return self._store(reservation, BookStatus.IN_YOUR_HANDS)

    async def return_book(self, reservation_id: int) -> Reservation:
        await self._enter("return_book", reservation_id)
        reservation = self.reservations[reservation_id].model_copy(
            update={"status": ReservationStatus.RETURNED, "returned_at": datetime.now(timezone.utc)}
        )
        return self._store(reservation, BookStatus.AVAILABLE)

    async def cancel(self, reservation_id: int) -> Reservation:
        await self._enter("cancel", reservation_id)
        reservation = self.reservations[reservation_id].model_copy(
            update={"status": ReservationStatus.CANCELLED}
        )
        return self._store(reservation, BookStatus.AVAILABLE)

    async def get_unread_notification_count(self) -> int:
        await self._enter("get_unread_notification_count")
        return self.unread


# === Configuration Fixtures ===


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Run every test without LIBRARY_CLIENT_* variables and a fresh config."""
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("LIBRARY_CLIENT_"):
            del os.environ[key]
    reset_config()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    reset_config()


@pytest.fixture
def test_config() -> ClientConfig:
    """Configuration pointing at a local test backend."""
    return ClientConfig(
        api_base_url="http://library.test",
        access_token="test-token",
        request_timeout=2.0,
        cache_ttl=0,
        debug=True,
        log_level="DEBUG",
    )


# === Reservation Layer Fixtures ===


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def orchestrator(backend: FakeBackend, cache: QueryCache) -> ReservationOrchestrator:
    return ReservationOrchestrator(backend, cache)


@pytest.fixture
def seeded_cache(cache: QueryCache) -> QueryCache:
    """Cache holding data for every query a mutation invalidates."""
    cache.set(QueryKeys.MY_RESERVATIONS, [])
    cache.set(QueryKeys.ACTIVE_RESERVATIONS, [])
    cache.set(QueryKeys.BOOKS, [])
    cache.set(QueryKeys.book(1), Book(id=1, status=BookStatus.AVAILABLE))
    cache.set(QueryKeys.book(2), Book(id=2, status=BookStatus.AVAILABLE))
    return cache
