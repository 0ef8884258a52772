"""
Async REST client for the library backend.

The client maps each backend operation the reservation layer needs onto one
HTTP request and converts responses into pydantic models. Failures are
raised as ``ApiError``; classifying them for the reader is the job of the
reservation layer, not of the transport.
"""

import logging
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import ClientConfig, get_config
from ..models import Book, Reservation
from .errors import ApiError, UnauthorizedError

logger = logging.getLogger(__name__)

_reservation_list = TypeAdapter(list[Reservation])
_book_list = TypeAdapter(list[Book])


class LibraryBackend(Protocol):
    """Backend operations the reservation layer depends on."""

    async def list_user_reservations(self) -> list[Reservation]: ...

    async def list_active_reservations(self) -> list[Reservation]: ...

    async def list_books(self) -> list[Book]: ...

    async def get_book(self, book_id: int) -> Book: ...

    async def reserve(self, book_id: int) -> Reservation | None: ...

    async def take(self, reservation_id: int) -> Reservation | None: ...

    async def return_book(self, reservation_id: int) -> Reservation | None: ...

    async def cancel(self, reservation_id: int) -> Reservation | None: ...

    async def get_unread_notification_count(self) -> int: ...


def _decode_body(response: httpx.Response) -> Any:
    """Decoded JSON body, the raw text when it is not JSON, ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class LibraryApiClient:
    """
    ``LibraryBackend`` implementation over HTTP.

    Use as an async context manager, or call ``aclose()`` when done:

        async with LibraryApiClient() as api:
            books = await api.list_books()

    Args:
        config: Client configuration; the process-wide one by default
        http_client: Preconfigured ``httpx.AsyncClient`` (tests pass one with
            a mock transport); created from ``config`` when omitted
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or get_config()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.request_timeout,
            headers={"Content-Type": "application/json", **self.config.auth_headers},
        )

    async def __aenter__(self) -> "LibraryApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request and return the decoded body of a 2xx response."""
        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed without a response: %s", method, path, e)
            raise ApiError(f"{method} {path} failed: {e}") from e

        payload = _decode_body(response)
        if response.status_code == 401:
            raise UnauthorizedError(
                f"{method} {path} was rejected as unauthorized",
                status_code=401,
                payload=payload,
            )
        if response.is_error:
            logger.info("%s %s returned HTTP %d", method, path, response.status_code)
            raise ApiError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        return payload

    def _parse_list(self, adapter: TypeAdapter, payload: Any, path: str) -> list:
        """Validate a list body; anything that is not a list reads as empty."""
        try:
            return adapter.validate_python(payload if isinstance(payload, list) else [])
        except ValidationError as e:
            raise ApiError(f"GET {path} returned a malformed body", payload=payload) from e

    def _parse_reservation(self, payload: Any, path: str) -> Reservation | None:
        """
        Decode the reservation returned by a mutation.

        The request already succeeded, so a missing or unreadable body is not
        an error: ``None`` is returned and callers refetch what they need.
        """
        if payload is None:
            return None
        try:
            return Reservation.model_validate(payload)
        except ValidationError as e:
            logger.warning("POST %s returned an unreadable reservation: %s", path, e)
            return None

    # === Reads ===

    async def list_user_reservations(self) -> list[Reservation]:
        path = "/api/reservations/my"
        return self._parse_list(_reservation_list, await self._request("GET", path), path)

    async def list_active_reservations(self) -> list[Reservation]:
        path = "/api/reservations/my/active"
        return self._parse_list(_reservation_list, await self._request("GET", path), path)

    async def list_books(self) -> list[Book]:
        path = "/api/books"
        return self._parse_list(_book_list, await self._request("GET", path), path)

    async def get_book(self, book_id: int) -> Book:
        path = f"/api/books/{book_id}"
        payload = await self._request("GET", path)
        try:
            return Book.model_validate(payload)
        except ValidationError as e:
            raise ApiError(f"GET {path} returned a malformed body", payload=payload) from e

    async def get_unread_notification_count(self) -> int:
        """Unread count; the backend answers with a bare number or ``{"count": n}``."""
        path = "/api/notifications/unread-count"
        payload = await self._request("GET", path)
        count = payload.get("count", 0) if isinstance(payload, dict) else payload
        try:
            return int(count or 0)
        except (TypeError, ValueError) as e:
            raise ApiError(f"GET {path} returned a malformed count", payload=payload) from e

    # === Mutations ===

    async def reserve(self, book_id: int) -> Reservation | None:
        path = "/api/reservations"
        payload = await self._request("POST", path, json={"bookId": book_id})
        return self._parse_reservation(payload, path)

    async def take(self, reservation_id: int) -> Reservation | None:
        path = f"/api/reservations/{reservation_id}/take"
        return self._parse_reservation(await self._request("POST", path), path)

    async def return_book(self, reservation_id: int) -> Reservation | None:
        path = f"/api/reservations/{reservation_id}/return"
        return self._parse_reservation(await self._request("POST", path), path)

    async def cancel(self, reservation_id: int) -> Reservation | None:
        path = f"/api/reservations/{reservation_id}/cancel"
        return self._parse_reservation(await self._request("POST", path), path)
