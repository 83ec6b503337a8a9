"""
Custom exceptions for async_fetch.

This module defines the exception hierarchy used throughout
the library for error handling and debugging.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .http_primitives import Response


class RequestError(Exception):
    """
    Base exception for all async_fetch errors.

    Also serves as the general carrier callers raise themselves when a
    received response must be treated as an error. The response is only
    attached when explicitly supplied; non-2xx replies are never turned
    into errors automatically.
    """

    def __init__(
        self,
        message: str = "",
        code: int = 500,
        response: Optional["Response"] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.response = response
        self.cause = cause

    @property
    def has_response(self) -> bool:
        """Check if a response object is attached to the error."""
        return self.response is not None


class AddressResolutionError(RequestError, ValueError):
    """Raised when no connectable host can be extracted from a URL."""


class ConnectionError(RequestError):
    """Raised when a socket cannot be opened or fails during I/O."""


class ConnectTimeoutError(ConnectionError):
    """Raised when a connection attempt exceeds the connect timeout."""

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        super().__init__(message, cause=cause)


class ProtocolError(RequestError):
    """Raised when the server reply cannot be parsed as HTTP."""
