"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that can be used for unit testing without requiring actual network connections.
"""

import asyncio
import ssl
from typing import Any, Dict, List, Optional, Tuple

from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    This implementation simulates a network stream in memory, serving the
    scripted reply to readers and recording everything written to it.
    """

    def __init__(
        self,
        data: bytes = b"",
        read_delay: float = 0.0,
        fail_after: Optional[int] = None,
    ):
        """
        Initialize the mock stream.

        Args:
            data: Data to be available for reading.
            read_delay: Seconds each read suspends before returning.
            fail_after: Raise OSError once this many bytes have been read.
        """
        self._data = data
        self._position = 0
        self._closed = False
        self._eof = False
        self._read_delay = read_delay
        self._fail_after = fail_after
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self.read_calls = 0

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the mock stream.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If the configured failure point has been reached.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")

        self.read_calls += 1
        await asyncio.sleep(self._read_delay)

        if self._fail_after is not None and self._position >= self._fail_after:
            raise OSError("Connection reset by peer")

        if self._position >= len(self._data):
            self._eof = True
            return b""

        if max_bytes is None:
            end = len(self._data)
        else:
            end = min(self._position + max_bytes, len(self._data))
        result = self._data[self._position:end]
        self._position = end

        return result

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock stream.

        Raises:
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")

        self._write_buffer.append(data)

    async def aclose(self) -> None:
        """Close the mock stream."""
        self._closed = True

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def at_eof(self) -> bool:
        return self._eof

    @property
    def is_closed(self) -> bool:
        """Check if the mock stream is closed."""
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Replies are scripted per ``(host, port)``. Every connection gets a fresh
    MockNetworkStream serving the scripted reply; all handed-out streams
    are kept in ``streams`` in connection order.
    """

    def __init__(self):
        """Initialize the mock backend."""
        self._replies: Dict[Tuple[str, int], Dict[str, Any]] = {}
        self._refused: Dict[Tuple[str, int], str] = {}
        self.streams: List[MockNetworkStream] = []
        self.tls_hosts: List[Tuple[str, int]] = []
        self.ssl_contexts: List[Optional[ssl.SSLContext]] = []
        self.timeouts: List[Optional[float]] = []

    def add_reply(
        self,
        host: str,
        port: int,
        data: bytes,
        read_delay: float = 0.0,
        fail_after: Optional[int] = None,
    ) -> None:
        """
        Script the reply served to connections to ``host:port``.

        Args:
            host: The hostname.
            port: The port number.
            data: Raw reply bytes.
            read_delay: Seconds each read suspends before returning.
            fail_after: Raise OSError after this many bytes were read.
        """
        self._replies[(host, port)] = {
            "data": data,
            "read_delay": read_delay,
            "fail_after": fail_after,
        }

    def refuse(self, host: str, port: int, message: str = "Connection refused") -> None:
        """Make connections to ``host:port`` fail with OSError."""
        self._refused[(host, port)] = message

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None
    ) -> MockNetworkStream:
        """
        Create a mock TCP connection.

        Raises:
            OSError: If the endpoint was marked as refused.
        """
        key = (host, port)
        self.timeouts.append(timeout)
        if key in self._refused:
            raise OSError(self._refused[key])

        stream = MockNetworkStream(**self._replies.get(key, {}))
        stream.set_extra_info("socket", len(self.streams))
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self.streams.append(stream)

        return stream

    async def connect_tls(
        self,
        stream: MockNetworkStream,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> MockNetworkStream:
        """Mark a mock stream as TLS encrypted."""
        context = ssl_context or ssl.create_default_context()
        ssl_object = context.wrap_bio(ssl.MemoryBIO(), ssl.MemoryBIO(), server_hostname=host)
        stream.set_extra_info("ssl_object", ssl_object)
        self.tls_hosts.append((host, port))
        self.ssl_contexts.append(ssl_context)
        return stream

    def get_streams(self, host: str, port: int) -> List[MockNetworkStream]:
        """Return every stream opened to ``host:port``."""
        return [
            stream for stream in self.streams
            if stream.get_extra_info("peername") == (host, port)
        ]

    def reset(self) -> None:
        """Reset all mock replies and connections."""
        self._replies.clear()
        self._refused.clear()
        self.streams.clear()
        self.tls_hosts.clear()
        self.ssl_contexts.clear()
        self.timeouts.clear()
