"""
Network backend components for async_fetch.

This module provides the low-level networking abstractions
used to open and drive sockets.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .mock import MockNetworkBackend, MockNetworkStream
from .selector import SelectorNetworkBackend, SelectorNetworkStream
from .utils import (
    create_socket,
    create_ssl_context,
    get_socket_error,
)

__all__ = [
    "NetworkBackend",
    "NetworkStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "SelectorNetworkBackend",
    "SelectorNetworkStream",
    "create_socket",
    "create_ssl_context",
    "get_socket_error",
]
