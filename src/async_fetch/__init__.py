"""
async_fetch - minimal asynchronous HTTP/1.1 client

Issues HTTP/1.1 requests directly over raw non-blocking sockets on the
asyncio event loop, one connection per request, and fans several requests
out concurrently with order-preserving results.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .address import parse_address, resolve_address
from .exceptions import (
    AddressResolutionError,
    ConnectionError,
    ConnectTimeoutError,
    ProtocolError,
    RequestError,
)
from .fetch import Fetch, fetch
from .http11 import ExchangeState, HTTP11Exchange
from .http_primitives import Request, Response, create_json_request, get_header
from .options import Options
from .protocol import build_request, clean_json_body, parse_headers, parse_response

__all__ = [
    "fetch",
    "Fetch",
    "Request",
    "Response",
    "create_json_request",
    "get_header",
    "Options",
    "HTTP11Exchange",
    "ExchangeState",
    "resolve_address",
    "parse_address",
    "build_request",
    "parse_response",
    "parse_headers",
    "clean_json_body",
    "RequestError",
    "AddressResolutionError",
    "ConnectionError",
    "ConnectTimeoutError",
    "ProtocolError",
]
