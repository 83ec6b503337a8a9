"""
Pytest configuration for async_fetch tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import os

import pytest

from async_fetch.network.mock import MockNetworkBackend


def http_reply(
    status: str = "200 OK",
    body: str = "",
    headers=None,
) -> bytes:
    """Build raw reply bytes the way a Connection: close server sends them."""
    lines = [f"HTTP/1.1 {status}"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    return ("\r\n".join(lines) + "\r\n\r\n" + body).encode("utf-8")


@pytest.fixture
def ca_file():
    """Path to a self-signed CA certificate in PEM format."""
    return os.path.join(os.path.dirname(__file__), "fixtures", "ca.pem")


@pytest.fixture
def mock_backend():
    """Create a mock network backend."""
    return MockNetworkBackend()


@pytest.fixture
def make_reply():
    """Build raw HTTP reply bytes."""
    return http_reply


@pytest.fixture
def sample_headers():
    """Sample headers for testing."""
    return {
        "Content-Type": "application/json",
        "Authorization": "Bearer token123",
        "User-Agent": "async_fetch/0.1.0",
        "Accept": "*/*",
    }


@pytest.fixture
def json_reply():
    """Sample JSON reply with noise around the document."""
    return http_reply(
        "200 OK",
        'garbled{"a":1}trailing',
        {"Content-Type": "application/json", "Server": "test"},
    )
