"""REST transport for the library backend."""

from .client import LibraryApiClient, LibraryBackend
from .errors import ApiError, UnauthorizedError

__all__ = [
    "ApiError",
    "LibraryApiClient",
    "LibraryBackend",
    "UnauthorizedError",
]
