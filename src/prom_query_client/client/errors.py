"""Exceptions raised by :class:`~prom_query_client.client.QueryClient`."""

from __future__ import annotations

from typing import Any


class ApiError(RuntimeError):
    """Base class for every failure reported by the query client."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        request: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code
        self.request = request


class TransportFormatError(ApiError):
    """Response body is not JSON, not a JSON object, or lacks ``data.result``."""


class ServerReportedError(ApiError):
    """Server answered with an ``errorType``/``error`` envelope."""

    def __init__(self, error_type: str, error: str, **kwargs: Any) -> None:
        super().__init__(
            f"Client return error type: {error_type}, error: {error}", **kwargs
        )
        self.error_type = error_type
        self.error = error


class HttpStatusError(ApiError):
    """HTTP status >= 400 without a server error envelope."""

    def __init__(self, status_code: int, reason: str, **kwargs: Any) -> None:
        super().__init__(
            f"Client return error with status code: {status_code}, message: {reason}",
            status_code=status_code,
            **kwargs,
        )
        self.reason = reason


class GenericDispatchError(ApiError):
    """The transport failed before any response could be classified."""


__all__ = [
    "ApiError",
    "GenericDispatchError",
    "HttpStatusError",
    "ServerReportedError",
    "TransportFormatError",
]
