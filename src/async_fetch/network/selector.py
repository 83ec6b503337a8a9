"""
Non-blocking socket backend driven by the running asyncio event loop.

Sockets are registered with the loop's selector through ``add_reader`` /
``add_writer`` only while a coroutine is waiting on them.
"""

import asyncio
import logging
import socket
import ssl
from typing import Any, Optional

from .backend import NetworkBackend
from .stream import NetworkStream
from .utils import create_socket, get_socket_error

logger = logging.getLogger(__name__)


def _wake(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


class SelectorNetworkStream(NetworkStream):
    """Network stream over a raw non-blocking socket."""

    DEFAULT_READ_SIZE = 65536

    def __init__(
        self,
        sock: socket.socket,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.sock = sock
        self.loop = loop or asyncio.get_running_loop()
        self.closed = False
        self.eof = False

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self.closed:
            raise RuntimeError("Stream is closed")
        if max_bytes is None:
            max_bytes = self.DEFAULT_READ_SIZE
        while True:
            try:
                chunk = self.sock.recv(max_bytes)
            except (BlockingIOError, InterruptedError, ssl.SSLWantReadError):
                await self._wait_for_read()
                continue
            except ssl.SSLWantWriteError:
                await self._wait_for_write()
                continue
            if not chunk:
                self.eof = True
            return chunk

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise RuntimeError("Stream is closed")
        view = memoryview(data)
        total = 0
        while total < len(data):
            try:
                total += self.sock.send(view[total:])
            except (BlockingIOError, InterruptedError, ssl.SSLWantWriteError):
                await self._wait_for_write()
            except ssl.SSLWantReadError:
                await self._wait_for_read()

    async def _wait_for_read(self) -> None:
        future = self.loop.create_future()
        fd = self.sock.fileno()
        self.loop.add_reader(fd, _wake, future)
        try:
            await future
        finally:
            self.loop.remove_reader(fd)

    async def _wait_for_write(self) -> None:
        future = self.loop.create_future()
        fd = self.sock.fileno()
        self.loop.add_writer(fd, _wake, future)
        try:
            await future
        finally:
            self.loop.remove_writer(fd)

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            self.sock.close()

    def get_extra_info(self, name: str) -> Optional[Any]:
        if name == "socket":
            return self.sock
        elif name == "peername":
            try:
                return self.sock.getpeername()
            except OSError:
                return None
        elif name == "sockname":
            try:
                return self.sock.getsockname()
            except OSError:
                return None
        elif name == "ssl_object":
            if isinstance(self.sock, ssl.SSLSocket):
                return self.sock
            return None
        return None

    @property
    def at_eof(self) -> bool:
        return self.eof

    @property
    def is_closed(self) -> bool:
        return self.closed


class SelectorNetworkBackend(NetworkBackend):
    """Network backend opening raw non-blocking sockets on the running loop."""

    async def connect_tcp(
        self, host: str, port: int, timeout: Optional[float] = None
    ) -> SelectorNetworkStream:
        # The timeout bounds name resolution and the connect together
        return await asyncio.wait_for(self._open(host, port), timeout)

    async def _open(self, host: str, port: int) -> SelectorNetworkStream:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        family, type_, proto, _, sockaddr = infos[0]

        sock = create_socket(family, type_, proto)
        stream = SelectorNetworkStream(sock, loop)
        try:
            try:
                sock.connect(sockaddr)
            except (BlockingIOError, InterruptedError):
                await stream._wait_for_write()
            error = get_socket_error(sock)
            if error is not None:
                raise OSError(error)
        except BaseException:
            await stream.aclose()
            raise

        logger.debug(f"Connected to {host}:{port} via {sockaddr}")
        return stream

    async def connect_tls(
        self,
        stream: SelectorNetworkStream,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> SelectorNetworkStream:
        context = ssl_context or ssl.create_default_context()
        try:
            ssl_sock = context.wrap_socket(
                stream.sock, server_hostname=host, do_handshake_on_connect=False
            )
        except BaseException:
            await stream.aclose()
            raise
        ssl_sock.setblocking(False)
        new_stream = SelectorNetworkStream(ssl_sock, stream.loop)
        try:
            await asyncio.wait_for(self._handshake(new_stream), timeout)
        except BaseException:
            await new_stream.aclose()
            raise

        logger.debug(f"TLS established with {host}:{port}")
        return new_stream

    async def _handshake(self, stream: SelectorNetworkStream) -> None:
        while True:
            try:
                stream.sock.do_handshake()
                return
            except ssl.SSLWantReadError:
                await stream._wait_for_read()
            except ssl.SSLWantWriteError:
                await stream._wait_for_write()
