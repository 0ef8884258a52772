"""Transport exceptions raised by the REST client."""

from typing import Any


class ApiError(Exception):
    """
    A request to the backend failed.

    Attributes:
        status_code: HTTP status of the response, ``None`` when no response
            was received (connection error, timeout)
        payload: Decoded JSON body, raw text when the body is not JSON, or
            ``None``
    """

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code!r}, payload={self.payload!r})"


class UnauthorizedError(ApiError):
    """The backend rejected the credentials (HTTP 401)."""
