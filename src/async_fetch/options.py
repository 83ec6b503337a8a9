"""
Per-call options recognized by async_fetch.

Options are plain mappings passed read-only through the pipeline.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from typing_extensions import TypedDict


class BasicAuth(TypedDict, total=False):
    username: str
    password: str


class Auth(TypedDict, total=False):
    basic: BasicAuth


class Options(TypedDict, total=False):
    """
    Recognized keys:

    - ``debug``: emit lifecycle trace records at INFO level
    - ``cert``: CA file used to verify the peer on TLS connections
    - ``auth``: ``{"basic": {"username": ..., "password": ...}}``
    - ``port``: explicit port, overrides the URL and scheme default
    """

    debug: bool
    cert: str
    auth: Auth
    port: int


EMPTY_OPTIONS: Mapping = MappingProxyType({})


def is_debug(options: Mapping) -> bool:
    return bool(options.get("debug", False))


def basic_auth(options: Mapping) -> Optional[Tuple[str, str]]:
    """Return ``(username, password)`` when basic auth with a username is configured."""
    basic = (options.get("auth") or {}).get("basic") or {}
    username = basic.get("username")
    if not username:
        return None
    return username, basic.get("password") or ""
