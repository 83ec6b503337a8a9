"""
Transport address resolution for async_fetch.

Maps request URLs to ``<transport>://<host>[:<port>]`` strings and back.
"""

import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .exceptions import AddressResolutionError

IPV4_PATTERN = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}")

TRANSPORTS = {"https": "ssl", "http": "tcp"}
DEFAULT_PORTS = {"https": 443, "http": 80}


def format_host(host: str) -> str:
    """Bracket IPv6 literals so the host can be followed by a port."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


def resolve_address(url: str, port: Optional[int] = None) -> str:
    """
    Compute the transport address for a URL.

    URLs containing an IPv4 literal bypass URL parsing entirely and always
    resolve to plain TCP on port 80. Otherwise ``https`` maps to ``ssl``,
    ``http`` to ``tcp`` and any other scheme is passed through unchanged.

    Args:
        url: Request URL
        port: Explicit port, takes precedence over the URL and scheme default

    Returns:
        Address string such as ``ssl://example.com:443``

    Raises:
        AddressResolutionError: If no host can be extracted from the URL
    """
    match = IPV4_PATTERN.search(url)
    if match:
        return f"tcp://{match.group(0)}:80"

    parsed = urlsplit(url)
    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if not host:
        raise AddressResolutionError(
            f"HOST URL is not a valid url component nor a valid address: {url!r}"
        )

    if port is None:
        try:
            port = parsed.port
        except ValueError as exc:
            raise AddressResolutionError(f"Invalid port in URL: {url!r}", cause=exc) from exc
    if port is None:
        port = DEFAULT_PORTS.get(scheme)

    host = format_host(host)
    transport = TRANSPORTS.get(scheme, scheme)
    if port:
        return f"{transport}://{host}:{port}"
    return f"{transport}://{host}"


def parse_address(address: str) -> Tuple[str, str, Optional[int]]:
    """
    Split a transport address into ``(transport, host, port)``.

    Raises:
        AddressResolutionError: If the address is malformed
    """
    transport, separator, _ = address.partition("://")
    if not separator:
        raise AddressResolutionError(f"Malformed transport address: {address!r}")

    parsed = urlsplit(address)
    if not parsed.hostname:
        raise AddressResolutionError(f"Malformed transport address: {address!r}")
    try:
        port = parsed.port
    except ValueError as exc:
        raise AddressResolutionError(
            f"Malformed transport address: {address!r}", cause=exc
        ) from exc

    return transport, parsed.hostname, port
