"""
HTTP/1.1 wire codec for async_fetch.

This module serializes Request objects into literal HTTP/1.1 request bytes
and parses raw reply bytes back into Response objects. It intentionally
implements only what a ``Connection: close`` exchange needs: no chunked
decoding, no header validation.
"""

import base64
import logging
import re
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlsplit

from .exceptions import ProtocolError
from .address import format_host
from .http_primitives import HeaderValue, Request, Response, get_header, header_lines
from .options import EMPTY_OPTIONS, basic_auth

logger = logging.getLogger(__name__)

CRLF = "\r\n"

STATUS_LINE_PATTERN = re.compile(r"^HTTP/[0-9.]* ([0-9]{3})(?: ([^\r\n]*))?(?=\r|\n|$)")

JSON_CONTENT_TYPE_PATTERN = re.compile(
    r"^(?:application|text)/(?:[a-z]+(?:[.-][0-9a-z]+)*[+.]|x-)?json(?:-[a-z]+)?",
    re.IGNORECASE,
)

REQUEST_LINE_KEY = "Request-Line"

SUCCESS_REASON = "Ok"
DEFAULT_REASON = "Bad Request"


def request_target(url: str) -> str:
    """
    Compute the request-target for a URL.

    The ``scheme://host[:port]`` prefix is stripped and leading slashes are
    trimmed; the rest (path, query, fragment) is kept verbatim.
    """
    parsed = urlsplit(url)
    prefix = f"{parsed.scheme}://{parsed.netloc}"
    # urlsplit lowercases the scheme, so compare the prefix without case
    if parsed.netloc and url.lower().startswith(prefix.lower()):
        path = url[len(prefix):]
    else:
        path = url
    return "/" + path.lstrip("/")


def build_request(request: Request, options: Optional[Mapping] = None) -> bytes:
    """
    Serialize a request into HTTP/1.1 bytes.

    Args:
        request: The request to serialize
        options: Per-call options; only ``auth.basic`` is used here

    Returns:
        Complete request bytes ready to be written to the socket
    """
    options = options or EMPTY_OPTIONS
    host = format_host(urlsplit(request.url).hostname or "")
    body = request.body.encode("utf-8")

    lines = [
        f"{request.method} {request_target(request.url)} HTTP/1.1",
        f"Host: {host}",
        # Emitted even for an empty body.
        f"Content-length: {len(body)}",
    ]
    # TODO: validate header names against RFC 7230 token rules
    lines.extend(header_lines(request.headers))

    credentials = basic_auth(options)
    if credentials is not None:
        token = base64.b64encode(":".join(credentials).encode("utf-8")).decode("ascii")
        lines.append(f"Authorization: Basic {token}")

    lines.append("Connection: close")

    head = (CRLF.join(lines) + CRLF + CRLF).encode("utf-8")
    if body:
        return head + body + CRLF.encode("ascii")
    return head


def parse_headers(block: str) -> Dict[str, HeaderValue]:
    """
    Parse a raw header block.

    The first line is stored verbatim under ``Request-Line``. Every other
    line is split on its first colon; repeated names collect into a list.
    """
    lines = [line for line in block.split(CRLF) if line]
    headers: Dict[str, HeaderValue] = {REQUEST_LINE_KEY: lines[0] if lines else ""}
    names: Dict[str, str] = {}

    for line in lines[1:]:
        if ":" not in line:
            continue
        name, _, value = line.partition(":")
        name, value = name.strip(), value.strip()

        existing = names.get(name.lower())
        if existing is None:
            names[name.lower()] = name
            headers[name] = value
            continue

        previous = headers[existing]
        values: List[str] = [previous] if isinstance(previous, str) else list(previous)
        values.append(value)
        headers[existing] = values

    return headers


def is_json_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and JSON_CONTENT_TYPE_PATTERN.match(content_type) is not None


def clean_json_body(body: str) -> str:
    """
    Drop anything before the first ``{`` and after the last ``}``.

    This is a best-effort extraction, not a JSON validator: bodies without
    a brace pair are returned unchanged.
    """
    start = body.find("{")
    end = body.rfind("}")
    if start == -1 or end < start:
        return body
    return body[start:end + 1]


def parse_response(data: bytes) -> Response:
    """
    Parse raw reply bytes into a Response.

    Args:
        data: Everything read from the socket until end of stream

    Returns:
        The parsed response; non-2xx codes are returned, not raised

    Raises:
        ProtocolError: If the status line is not a valid HTTP status line
    """
    text = data.decode("utf-8", errors="replace")

    match = STATUS_LINE_PATTERN.match(text)
    if match is None:
        raise ProtocolError("Invalid HTTP reply.", 500)

    head, _, body = text.partition(CRLF + CRLF)
    headers = parse_headers(head)

    if is_json_content_type(get_header(headers, "Content-Type")):
        body = clean_json_body(body)

    status_code = int(match.group(1))
    reason = match.group(2)
    if not reason:
        reason = SUCCESS_REASON if 200 <= status_code <= 201 else DEFAULT_REASON

    logger.debug(f"Parsed reply: {status_code} {reason} ({len(data)} bytes)")

    return Response(
        status_code=status_code,
        reason_phrase=reason,
        headers=headers,
        body=body,
    )
