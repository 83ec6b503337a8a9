"""
Network utilities for async_fetch.

This module provides helpers for socket creation, SSL context setup
and socket error inspection.
"""

import os
import socket
import ssl
from typing import Optional


def create_socket(
    family: int = socket.AF_INET,
    type: int = socket.SOCK_STREAM,
    proto: int = 0
) -> socket.socket:
    """
    Create a non-blocking socket for an outgoing connection.

    Args:
        family: Address family (default: AF_INET)
        type: Socket type (default: SOCK_STREAM)
        proto: Protocol (default: 0 for auto)

    Returns:
        Configured socket object

    Raises:
        OSError: If socket creation fails
    """
    sock = socket.socket(family, type, proto)
    try:
        if family in (socket.AF_INET, socket.AF_INET6):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


def create_ssl_context(cafile: Optional[str] = None) -> ssl.SSLContext:
    """
    Create an SSL context for a client connection.

    With a CA file the peer certificate is verified against it. Without one,
    self-signed certificates are accepted and the peer is not verified.

    Args:
        cafile: Path to a CA bundle used to verify the peer

    Returns:
        Configured SSL context

    Raises:
        ssl.SSLError: If the CA file cannot be loaded
    """
    if cafile:
        context = ssl.create_default_context(cafile=cafile)
        context.verify_mode = ssl.CERT_REQUIRED
        context.check_hostname = True
    else:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    return context


def get_socket_error(sock: socket.socket) -> Optional[str]:
    """
    Get the pending error message for a socket.

    Args:
        sock: Socket object

    Returns:
        Error message or None if no error
    """
    try:
        error_code = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if error_code == 0:
            return None
        return os.strerror(error_code)
    except OSError:
        return "Unknown socket error"
