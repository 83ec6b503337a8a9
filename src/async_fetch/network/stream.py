"""
Network stream interface for async_fetch.

This module defines the NetworkStream interface that all network stream
implementations must follow for consistent behavior across the library.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for network streams with async I/O operations.

    A stream is owned by exactly one exchange; implementations need not be
    safe for concurrent use by several coroutines.
    """

    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the stream.

        Args:
            max_bytes: Maximum number of bytes to read.

        Returns:
            Up to ``max_bytes`` bytes, or ``b""`` once the peer has
            closed the stream.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the stream, suspending until all of it is sent.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and release the underlying socket."""
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream.

        Common names: ``socket``, ``peername``, ``sockname``, ``ssl_object``.
        Returns None if the information is not available.
        """
        pass

    @property
    @abstractmethod
    def at_eof(self) -> bool:
        """True once the peer has signalled end of stream."""
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """True once ``aclose`` has been called."""
        pass
