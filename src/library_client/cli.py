"""Command line entry point for the library reservations client."""

import argparse
import asyncio
import logging
import sys

from .api import ApiError, LibraryApiClient
from .cache import QueryCache
from .config import get_config
from .models import MyBookStatus
from .observability import initialize_observability
from .reservations import (
    ActionNotAvailableError,
    BookReservationView,
    Err,
    ReservationAction,
    ReservationOrchestrator,
)

logger = logging.getLogger(__name__)

ACTION_COMMANDS = {
    "reserve": ReservationAction.RESERVE,
    "take": ReservationAction.TAKE,
    "return": ReservationAction.RETURN,
    "cancel": ReservationAction.CANCEL,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="library-client",
        description="Browse the library catalog and manage your book reservations",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("books", help="List the catalog")

    my_books = commands.add_parser("my-books", help="List books you have reserved")
    my_books.add_argument(
        "--status",
        choices=["all", *(status.value for status in MyBookStatus)],
        default="all",
        help="Only show books with this status",
    )
    my_books.add_argument("--query", default="", help="Search in title and author")
    my_books.add_argument("--page", type=int, default=1, help="Page to show")

    show = commands.add_parser("show", help="Show the reservation state of a book")
    show.add_argument("book_id", type=int)

    for name in ACTION_COMMANDS:
        action = commands.add_parser(name, help=f"{name.capitalize()} a book")
        action.add_argument("book_id", type=int)

    commands.add_parser("unread", help="Show the unread notification count")
    return parser


def _format_view(view: BookReservationView) -> str:
    actions = [
        name
        for name, allowed in (
            ("reserve", view.can_reserve),
            ("take", view.can_take),
            ("return", view.can_return),
            ("cancel", view.can_cancel),
        )
        if allowed
    ]
    lines = [
        f"Book {view.book_id}: {view.book_status}",
        f"  my status:   {view.status or '-'}",
        f"  reserved at: {view.reserved_at or '-'}",
        f"  taken at:    {view.taken_at or '-'}",
        f"  returned at: {view.returned_at or '-'}",
        f"  actions:     {', '.join(actions) or '-'}",
    ]
    if view.last_error:
        lines.append(f"  last error:  {view.last_error.message}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    config = get_config()
    async with LibraryApiClient(config) as api:
        orchestrator = ReservationOrchestrator(api, QueryCache(ttl=config.cache_ttl))

        if args.command == "books":
            for book in await orchestrator.books():
                print(f"{book.id:>6}  {book.effective_status.value:<14} {book.title}")
            return 0

        if args.command == "my-books":
            page = await orchestrator.my_books(
                status=args.status,
                query=args.query,
                page=args.page,
                page_size=config.my_books_page_size,
            )
            for entry in page.items:
                print(f"{entry.book_id:>6}  {entry.status:<10} {entry.title} ({entry.author})")
            print(f"page {page.page}/{page.total_pages}, {page.total} books")
            return 0

        if args.command == "show":
            print(_format_view(await orchestrator.view(args.book_id)))
            return 0

        if args.command == "unread":
            print(await orchestrator.unread_notifications())
            return 0

        try:
            result = await orchestrator.perform(args.book_id, ACTION_COMMANDS[args.command])
        except ActionNotAvailableError as e:
            print(str(e), file=sys.stderr)
            return 2
        finally:
            await orchestrator.drain()

        if isinstance(result, Err):
            print(result.error.message, file=sys.stderr)
            return 1
        if result.reservation is None:
            print(f"{args.command}: done")
        else:
            reservation = result.reservation
            print(f"{args.command}: reservation {reservation.id} is {reservation.status}")
        return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = get_config()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    initialize_observability()

    try:
        return asyncio.run(run(args))
    except ApiError as e:
        logger.error("Request failed: %s", e)
        return 1
