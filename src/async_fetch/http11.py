"""
HTTP/1.1 exchange implementation for async_fetch.

This module implements the HTTP11Exchange class that drives a single
request/response exchange over its own NetworkStream: resolve, connect,
write, read to end of stream, close, parse.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional

from .address import parse_address, resolve_address
from .exceptions import ConnectionError, ConnectTimeoutError
from .http_primitives import Request, Response
from .network import NetworkBackend, NetworkStream, SelectorNetworkBackend, create_ssl_context
from .options import EMPTY_OPTIONS, Options, is_debug
from .protocol import build_request, parse_response

logger = logging.getLogger(__name__)


class ExchangeState(Enum):
    """States of an HTTP/1.1 exchange, in the order they are entered."""
    IDLE = "idle"                          # Created, nothing done yet
    ADDRESS_RESOLVED = "address_resolved"  # Transport address computed
    CONNECTED = "connected"                # Stream open (TLS done if any)
    REQUEST_SENT = "request_sent"          # Request bytes fully written
    READING = "reading"                    # Accumulating the reply
    CLOSED = "closed"                      # Stream closed after end of stream
    PARSED = "parsed"                      # Response available
    FAILED = "failed"                      # Terminated by an error


class HTTP11Exchange:
    """
    HTTP/1.1 request/response exchange.

    Each exchange opens its own connection, sends exactly one request with
    ``Connection: close`` and reads until the server closes the stream. The
    stream is never shared and is always closed, whatever the outcome.
    """

    # Default configuration
    DEFAULT_CONNECT_TIMEOUT = 60.0  # 60 seconds
    DEFAULT_CHUNK_SIZE = 100  # Bytes per read

    SUPPORTED_TRANSPORTS = ("tcp", "ssl")

    def __init__(
        self,
        request: Request,
        options: Optional[Options] = None,
        backend: Optional[NetworkBackend] = None,
        connect_timeout: Optional[float] = None,
        chunk_size: Optional[int] = None,
    ):
        """
        Initialize the exchange.

        Args:
            request: The request to send
            options: Per-call options (debug, cert, auth, port)
            backend: Backend used to open the connection
            connect_timeout: Timeout for connecting in seconds
            chunk_size: Maximum bytes requested per read
        """
        self._request = request
        self._options = options or EMPTY_OPTIONS
        self._backend = backend or SelectorNetworkBackend()
        self._state = ExchangeState.IDLE

        # Configuration
        self._connect_timeout = (
            self.DEFAULT_CONNECT_TIMEOUT if connect_timeout is None else connect_timeout
        )
        self._chunk_size = self.DEFAULT_CHUNK_SIZE if chunk_size is None else chunk_size
        if self._chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        # Metrics
        self._bytes_sent = 0
        self._bytes_received = 0
        self._duration: Optional[float] = None

    async def run(self) -> Response:
        """
        Run the complete exchange.

        Returns:
            The parsed HTTP response

        Raises:
            AddressResolutionError: If the URL has no usable host
            ConnectionError: If connecting or socket I/O fails
            ProtocolError: If the reply is not valid HTTP
        """
        start_time = time.time()
        try:
            response = await self._run()
        except Exception as e:
            self._state = ExchangeState.FAILED
            self._duration = time.time() - start_time
            logger.error(
                f"{self._request.method} {self._request.url} failed: {e} "
                f"({self._duration:.3f}s)"
            )
            raise

        self._duration = time.time() - start_time
        self._trace(
            f"{self._request.method} {self._request.url} "
            f"-> {response.status_code} ({self._duration:.3f}s)"
        )
        return response

    async def _run(self) -> Response:
        address = resolve_address(self._request.url, self._options.get("port"))
        transport, host, port = parse_address(address)
        self._state = ExchangeState.ADDRESS_RESOLVED
        self._trace(f"Reading from: {address}")

        stream = await self._connect(transport, host, port)
        self._state = ExchangeState.CONNECTED
        try:
            data = await self._send_and_receive(stream)
            await stream.aclose()
            self._state = ExchangeState.CLOSED
        finally:
            if not stream.is_closed:
                await stream.aclose()

        response = parse_response(data)
        self._state = ExchangeState.PARSED
        return response

    async def _connect(self, transport: str, host: str, port: Optional[int]) -> NetworkStream:
        """
        Open the stream for a resolved address.

        Raises:
            ConnectionError: If the transport is unsupported or the socket
                cannot be opened
        """
        if transport not in self.SUPPORTED_TRANSPORTS:
            raise ConnectionError(f'Unable to find the socket transport "{transport}"')
        if port is None:
            raise ConnectionError(f"No port to connect to for {transport}://{host}")

        try:
            ssl_context = None
            if transport == "ssl":
                ssl_context = create_ssl_context(self._options.get("cert"))

            stream = await self._backend.connect_tcp(
                host, port, timeout=self._connect_timeout
            )
            if ssl_context is not None:
                stream = await self._backend.connect_tls(
                    stream,
                    host,
                    port,
                    timeout=self._connect_timeout,
                    ssl_context=ssl_context,
                )
        except asyncio.TimeoutError as e:
            raise ConnectTimeoutError(
                f"Connection to {host}:{port} timed out",
                timeout=self._connect_timeout,
                cause=e,
            ) from e
        except OSError as e:
            raise ConnectionError(str(e) or type(e).__name__, cause=e) from e

        return stream

    async def _send_and_receive(self, stream: NetworkStream) -> bytes:
        payload = build_request(self._request, self._options)
        self._trace(f"Request: \n{payload.decode('utf-8', errors='replace')}")

        buffer = bytearray()
        try:
            await stream.write(payload)
            self._bytes_sent += len(payload)
            self._state = ExchangeState.REQUEST_SENT

            self._state = ExchangeState.READING
            while True:
                chunk = await stream.read(self._chunk_size)
                buffer.extend(chunk)
                self._bytes_received += len(chunk)
                if not chunk or stream.at_eof:
                    break
        except OSError as e:
            raise ConnectionError(str(e) or type(e).__name__, cause=e) from e

        return bytes(buffer)

    def _trace(self, message: str) -> None:
        """Log a lifecycle record, at INFO when the debug option is on."""
        level = logging.INFO if is_debug(self._options) else logging.DEBUG
        logger.log(level, message)

    @property
    def state(self) -> ExchangeState:
        """Current lifecycle state."""
        return self._state

    @property
    def request(self) -> Request:
        return self._request

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get exchange metrics.

        Returns:
            Dictionary with exchange metrics
        """
        return {
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "duration": self._duration,
            "state": self._state.value,
        }
