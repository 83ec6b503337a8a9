"""
HTTP primitives for async_fetch.

This module defines the core data structures for HTTP requests and responses.
All classes are immutable; header updates return a new instance.
"""

import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union


# Type aliases for better readability
HeaderValue = Union[str, Sequence[str]]
Headers = Mapping[str, HeaderValue]
StatusCode = int


def get_header(headers: Headers, name: str) -> Optional[str]:
    """
    Get a header value by name (case-insensitive).

    Multi-valued headers are returned comma-joined.

    Args:
        headers: Mapping of header names to values
        name: Header name to look up

    Returns:
        The header value or None if the header is absent
    """
    if not headers:
        return None

    name_lower = name.lower()
    for header_name, header_value in headers.items():
        if header_name.lower() == name_lower:
            return _join_value(header_value)

    return None


def _join_value(value: HeaderValue) -> str:
    if isinstance(value, str):
        return value
    return ",".join(value)


def _with_header(headers: Headers, name: str, value: HeaderValue) -> Dict[str, HeaderValue]:
    """Copy headers, replacing any entry whose name differs only by case."""
    name_lower = name.lower()
    updated = {
        key: existing
        for key, existing in headers.items()
        if key.lower() != name_lower
    }
    updated[name] = value
    return updated


def _freeze_headers(headers: Optional[Headers]) -> Mapping[str, HeaderValue]:
    if headers is None:
        return MappingProxyType({})
    if not isinstance(headers, Mapping):
        raise ValueError("headers must be a mapping")
    for name, value in headers.items():
        if not isinstance(name, str):
            raise ValueError("header names must be str")
        if not isinstance(value, (str, list, tuple)):
            raise ValueError("header values must be str or a sequence of str")
    # Sequences become tuples so later changes to the caller's lists do not leak in
    return MappingProxyType(
        {name: value if isinstance(value, str) else tuple(value) for name, value in headers.items()}
    )


@dataclass(frozen=True, eq=True)
class Request:
    """
    Immutable HTTP request representation.

    The method is normalized to uppercase and defaults to GET, the body is
    never None (an empty string means "no body"), and header names keep
    their original case while lookups ignore it. Instances are unhashable
    because the headers mapping is.
    """

    __hash__ = None  # type: ignore[assignment]

    url: str
    method: str = "GET"
    headers: Headers = field(default_factory=dict)
    body: str = ""

    def __post_init__(self) -> None:
        """Validate and normalize request data after initialization."""
        if not isinstance(self.url, str):
            raise ValueError("url must be str")

        method = self.method or "GET"
        if not isinstance(method, str):
            raise ValueError("method must be str")
        object.__setattr__(self, "method", method.upper())

        body = "" if self.body is None else self.body
        if not isinstance(body, str):
            raise ValueError("body must be str")
        object.__setattr__(self, "body", body)

        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    @classmethod
    def create(
        cls,
        url: str,
        method: Optional[str] = "GET",
        body: Optional[str] = "",
        headers: Optional[Headers] = None,
    ) -> "Request":
        """
        Create a Request with the factory defaults.

        Args:
            url: Target URL
            method: HTTP method, GET when omitted
            body: Optional request body
            headers: Optional mapping of header names to values

        Returns:
            New Request instance
        """
        return cls(url=url, method=method, headers=headers or {}, body=body)

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return get_header(self.headers, name)

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return self.get_header(name) is not None

    def with_header(self, name: str, value: HeaderValue) -> "Request":
        """Create a new request with a header added or replaced."""
        return replace(self, headers=_with_header(self.headers, name, value))


@dataclass(frozen=True, eq=True)
class Response:
    """
    Immutable HTTP response representation.

    Responses are produced by the response parser, or built directly
    by callers and tests. Like requests, they are unhashable.
    """

    __hash__ = None  # type: ignore[assignment]

    status_code: StatusCode = 200
    reason_phrase: str = "OK"
    headers: Headers = field(default_factory=dict)
    body: str = ""

    def __post_init__(self) -> None:
        """Validate response data after initialization."""
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")

        if not isinstance(self.reason_phrase, str):
            raise ValueError("reason_phrase must be str")

        body = "" if self.body is None else self.body
        if not isinstance(body, str):
            raise ValueError("body must be str")
        object.__setattr__(self, "body", body)

        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    @classmethod
    def create(
        cls,
        body: Optional[str] = "",
        status_code: StatusCode = 200,
        headers: Optional[Headers] = None,
        reason_phrase: str = "OK",
    ) -> "Response":
        """
        Create a Response with the factory defaults.

        Args:
            body: Response body
            status_code: HTTP status code
            headers: Optional mapping of header names to values
            reason_phrase: Status line reason phrase

        Returns:
            New Response instance
        """
        return cls(
            status_code=status_code,
            reason_phrase=reason_phrase,
            headers=headers or {},
            body=body,
        )

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return get_header(self.headers, name)

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return self.get_header(name) is not None

    def with_header(self, name: str, value: HeaderValue) -> "Response":
        """Create a new response with a header added or replaced."""
        return replace(self, headers=_with_header(self.headers, name, value))


def create_json_request(
    url: str,
    method: str = "GET",
    body: Any = "",
    headers: Optional[Headers] = None,
) -> Request:
    """
    Create a request whose body is JSON encoded.

    String bodies are sent as-is; anything else goes through ``json.dumps``.
    The Content-Type header is always set to application/json.
    """
    if not isinstance(body, str):
        body = json.dumps(body)
    merged = _with_header(headers or {}, "Content-Type", "application/json")
    return Request.create(url, method, body, merged)


def header_lines(headers: Headers) -> List[str]:
    """Render headers as ``name: value`` lines in mapping order."""
    return [f"{name}: {_join_value(value)}" for name, value in headers.items()]
