"""
Tests for the REST client.

Requests are served by ``httpx.MockTransport`` so the tests check the
request mapping and error conversion without a network.
"""

import json

import httpx
import pytest

from library_client.api import ApiError, LibraryApiClient, UnauthorizedError
from library_client.cache import QueryCache, QueryKeys
from library_client.models import Book, BookStatus, Reservation, ReservationStatus
from library_client.reservations import Ok, ReservationOrchestrator

RESERVATION_PAYLOAD = {
    "id": 10,
    "bookId": 5,
    "status": "PENDING_RESERVED",
    "reservedAt": "2024-01-01T00:00:00Z",
}


def make_client(test_config, handler) -> LibraryApiClient:
    http = httpx.AsyncClient(
        base_url=test_config.api_base_url,
        transport=httpx.MockTransport(handler),
        headers=test_config.auth_headers,
    )
    return LibraryApiClient(test_config, http_client=http)


class TestReads:
    async def test_list_user_reservations(self, test_config):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[RESERVATION_PAYLOAD])

        async with make_client(test_config, handler) as api:
            reservations = await api.list_user_reservations()

        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/reservations/my"
        assert seen[0].headers["Authorization"] == "Bearer test-token"
        assert reservations[0].book_id == 5
        assert reservations[0].status == ReservationStatus.PENDING_RESERVED

    async def test_list_active_reservations(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/reservations/my/active"
            return httpx.Response(200, json=[RESERVATION_PAYLOAD])

        async with make_client(test_config, handler) as api:
            assert len(await api.list_active_reservations()) == 1

    async def test_non_list_body_is_empty_list(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"content": []})

        async with make_client(test_config, handler) as api:
            assert await api.list_books() == []
            assert await api.list_user_reservations() == []

    async def test_get_book(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/books/7"
            return httpx.Response(200, json={"id": 7, "title": "Dune", "status": "TAKEN"})

        async with make_client(test_config, handler) as api:
            book = await api.get_book(7)

        assert book.status == BookStatus.TAKEN

    @pytest.mark.parametrize("body", [3, {"count": 3}])
    async def test_unread_count_shapes(self, test_config, body):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/notifications/unread-count"
            return httpx.Response(200, json=body)

        async with make_client(test_config, handler) as api:
            assert await api.get_unread_notification_count() == 3


class TestMutations:
    async def test_reserve_posts_book_id(self, test_config):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json=RESERVATION_PAYLOAD)

        async with make_client(test_config, handler) as api:
            reservation = await api.reserve(5)

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/reservations"
        assert json.loads(seen[0].content) == {"bookId": 5}
        assert reservation.id == 10

    @pytest.mark.parametrize(
        ("method_name", "suffix"),
        [("take", "take"), ("return_book", "return"), ("cancel", "cancel")],
    )
    async def test_reservation_actions(self, test_config, method_name, suffix):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == f"/api/reservations/10/{suffix}"
            return httpx.Response(200, json=RESERVATION_PAYLOAD)

        async with make_client(test_config, handler) as api:
            reservation = await getattr(api, method_name)(10)

        assert reservation.id == 10


class TestErrors:
    async def test_json_error_body(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "Book already reserved"})

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.reserve(5)

        assert exc_info.value.status_code == 409
        assert exc_info.value.payload == {"message": "Book already reserved"}

    async def test_text_error_body(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="Maximum number of reserved books reached")

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.reserve(5)

        assert exc_info.value.payload == "Maximum number of reserved books reached"

    async def test_unauthorized(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401)

        async with make_client(test_config, handler) as api:
            with pytest.raises(UnauthorizedError) as exc_info:
                await api.list_books()

        assert exc_info.value.status_code == 401
        assert exc_info.value.payload is None

    async def test_connection_error(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.list_books()

        assert exc_info.value.status_code is None


class TestLifecycle:
    async def test_owned_client_is_closed(self, test_config):
        api = LibraryApiClient(test_config)

        await api.aclose()

        assert api._http.is_closed

    async def test_borrowed_client_is_left_open(self, test_config):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        api = LibraryApiClient(test_config, http_client=http)

        await api.aclose()

        assert not http.is_closed
        await http.aclose()


class TestMalformedBodies:
    async def test_mutation_without_body_returns_none(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        async with make_client(test_config, handler) as api:
            assert await api.cancel(40) is None

    async def test_mutation_with_unreadable_body_returns_none(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ok": True})

        async with make_client(test_config, handler) as api:
            assert await api.take(40) is None

    async def test_malformed_list_item_is_api_error(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"title": "no id"}])

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError):
                await api.list_books()

    async def test_malformed_book_is_api_error(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"title": "no id"})

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError):
                await api.get_book(7)

    @pytest.mark.parametrize("body", ["n/a", {"count": "many"}, [1, 2]])
    async def test_non_numeric_unread_count_is_api_error(self, test_config, body):
        def handler(request: httpx.Request) -> httpx.Response:
            if isinstance(body, str):
                return httpx.Response(200, text=body)
            return httpx.Response(200, json=body)

        async with make_client(test_config, handler) as api:
            with pytest.raises(ApiError):
                await api.get_unread_notification_count()


class TestOrchestratorOverHttp:
    """Mutation outcomes when the HTTP client backs the orchestrator."""

    async def test_cancel_with_empty_response_is_success(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/reservations/40/cancel":
                return httpx.Response(204)
            if request.url.path == "/api/notifications/unread-count":
                return httpx.Response(200, json=1)
            return httpx.Response(404)

        cache = QueryCache()
        cache.set(QueryKeys.ACTIVE_RESERVATIONS, [Reservation(id=40, book_id=3)])
        cache.set(QueryKeys.book(3), Book(id=3, status=BookStatus.RESERVED))

        async with make_client(test_config, handler) as api:
            orchestrator = ReservationOrchestrator(api, cache)
            result = await orchestrator.cancel(40, book_id=3)

        assert isinstance(result, Ok)
        assert result.reservation is None
        assert QueryKeys.ACTIVE_RESERVATIONS not in cache
        assert QueryKeys.book(3) not in cache
        assert orchestrator.last_error(3) is None
        assert cache.get(QueryKeys.UNREAD_NOTIFICATIONS) == 1

    async def test_unreadable_unread_count_does_not_break_reserve(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/reservations":
                return httpx.Response(201, json=RESERVATION_PAYLOAD)
            return httpx.Response(200, text="n/a")

        cache = QueryCache()
        cache.set(QueryKeys.UNREAD_NOTIFICATIONS, 2)

        async with make_client(test_config, handler) as api:
            result = await ReservationOrchestrator(api, cache).reserve(5)

        assert isinstance(result, Ok)
        assert QueryKeys.UNREAD_NOTIFICATIONS not in cache
