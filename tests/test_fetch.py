"""
Tests for fetch orchestration.

Covers target lifting, lazy start, order-preserving fan-out, failure
propagation without sibling cancellation, and the awaitable / blocking /
callback consumption styles.
"""

import asyncio

import pytest

from async_fetch.exceptions import ConnectionError, RequestError
from async_fetch.fetch import Fetch, fetch
from async_fetch.http_primitives import Request, Response
from async_fetch.network.mock import MockNetworkBackend
from async_fetch.options import Options


async def _drive(pending):
    return await pending


@pytest.fixture
def three_hosts(mock_backend, make_reply):
    """Three hosts where the second one answers last."""
    mock_backend.add_reply("a.test", 80, make_reply("200 OK", "a"), read_delay=0.01)
    mock_backend.add_reply("b.test", 80, make_reply("200 OK", "b"), read_delay=0.05)
    mock_backend.add_reply("c.test", 80, make_reply("200 OK", "c"))
    return mock_backend


class TestFetchSingle:
    """Test single-target fetches."""

    @pytest.mark.asyncio
    async def test_url_string_is_lifted_to_get(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 80, make_reply("200 OK", "hi"))

        response = await fetch("http://example.com/x", backend=mock_backend)

        assert isinstance(response, Response)
        assert response.body == "hi"
        assert mock_backend.streams[0].written_data.startswith(b"GET /x HTTP/1.1\r\n")

    @pytest.mark.asyncio
    async def test_request_object(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 80, make_reply("201 Created"))
        request = Request.create("http://example.com/items", "post", '{"a":1}')

        response = await fetch(request, backend=mock_backend)

        assert response.status_code == 201
        assert mock_backend.streams[0].written_data.startswith(b"POST /items HTTP/1.1\r\n")

    @pytest.mark.asyncio
    async def test_nothing_runs_until_driven(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 80, make_reply())

        pending = fetch("http://example.com/", backend=mock_backend)
        await asyncio.sleep(0.01)

        assert isinstance(pending, Fetch)
        assert not pending.started
        assert mock_backend.streams == []

        await pending
        assert pending.started
        assert pending.done()

    @pytest.mark.asyncio
    async def test_awaiting_twice_runs_once(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 80, make_reply("200 OK", "once"))
        pending = fetch("http://example.com/", backend=mock_backend)

        first = await pending
        second = await pending

        assert first is second
        assert len(mock_backend.streams) == 1

    @pytest.mark.asyncio
    async def test_options_are_passed_through(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 8080, make_reply())
        options = Options(port=8080, auth={"basic": {"username": "u", "password": "p"}})

        await fetch("http://example.com/", options, backend=mock_backend)

        assert b"Authorization: Basic dTpw\r\n" in mock_backend.streams[0].written_data
        assert options == {"port": 8080, "auth": {"basic": {"username": "u", "password": "p"}}}

    @pytest.mark.asyncio
    async def test_failure_raises(self, mock_backend):
        mock_backend.refuse("example.com", 80)

        with pytest.raises(ConnectionError):
            await fetch("http://example.com/", backend=mock_backend)

    def test_invalid_target_type(self) -> None:
        with pytest.raises(TypeError):
            fetch(42)

        with pytest.raises(TypeError):
            fetch(["http://example.com/", 42])


class TestFetchMany:
    """Test concurrent fan-out."""

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self, three_hosts):
        """Test that results follow input order, not completion order."""
        responses = await fetch(
            ["http://a.test/", Request.create("http://b.test/"), "http://c.test/"],
            backend=three_hosts,
        )

        assert isinstance(responses, list)
        assert [response.body for response in responses] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_requests_run_concurrently(self, three_hosts):
        """Test that every exchange is connected before the slow one finishes."""
        pending = fetch(
            ("http://a.test/", "http://b.test/", "http://c.test/"), backend=three_hosts
        )
        task = asyncio.ensure_future(_drive(pending))
        await asyncio.sleep(0.005)

        assert len(three_hosts.streams) == 3
        slow = three_hosts.get_streams("b.test", 80)[0]
        fast = three_hosts.get_streams("c.test", 80)[0]
        await asyncio.sleep(0.02)
        assert fast.is_closed
        assert not slow.is_closed

        responses = await task
        assert [response.body for response in responses] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_bare_strings_are_lifted_independently(self, mock_backend, make_reply):
        mock_backend.add_reply("a.test", 80, make_reply())
        mock_backend.add_reply("b.test", 80, make_reply())

        await fetch(
            ["http://a.test/", Request.create("http://b.test/", "DELETE")],
            backend=mock_backend,
        )

        assert mock_backend.get_streams("a.test", 80)[0].written_data.startswith(b"GET ")
        assert mock_backend.get_streams("b.test", 80)[0].written_data.startswith(b"DELETE ")

    @pytest.mark.asyncio
    async def test_empty_collection(self, mock_backend):
        assert await fetch([], backend=mock_backend) == []

    @pytest.mark.asyncio
    async def test_first_failure_propagates_without_cancelling_siblings(self, three_hosts):
        three_hosts.refuse("c.test", 80)

        with pytest.raises(ConnectionError):
            await fetch(["http://a.test/", "http://b.test/", "http://c.test/"], backend=three_hosts)

        slow = three_hosts.get_streams("b.test", 80)[0]
        assert not slow.is_closed

        await asyncio.sleep(0.3)
        assert slow.is_closed
        assert slow.at_eof


class TestFetchCallbacks:
    """Test callback and blocking consumption."""

    @pytest.mark.asyncio
    async def test_then_success(self, mock_backend, make_reply):
        mock_backend.add_reply("example.com", 80, make_reply("200 OK", "cb"))
        done = asyncio.Event()
        results = []

        def on_success(response):
            results.append(response)
            done.set()

        pending = fetch("http://example.com/", backend=mock_backend).then(on_success)
        await asyncio.wait_for(done.wait(), 1)

        assert pending.started
        assert results[0].body == "cb"

    @pytest.mark.asyncio
    async def test_then_error(self, mock_backend):
        mock_backend.refuse("example.com", 80, "Network unreachable")
        done = asyncio.Event()
        errors = []

        def on_error(error):
            errors.append(error)
            done.set()

        fetch("http://example.com/", backend=mock_backend)(lambda response: None, on_error)
        await asyncio.wait_for(done.wait(), 1)

        assert isinstance(errors[0], ConnectionError)
        assert errors[0].message == "Network unreachable"

    @pytest.mark.asyncio
    async def test_then_on_fan_out(self, three_hosts):
        done = asyncio.Event()
        results = []

        def on_success(responses):
            results.extend(responses)
            done.set()

        fetch(["http://a.test/", "http://b.test/"], backend=three_hosts).then(on_success)
        await asyncio.wait_for(done.wait(), 1)

        assert [response.body for response in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_unhandled_error_is_logged(self, mock_backend, caplog):
        mock_backend.refuse("example.com", 80)
        pending = fetch("http://example.com/", backend=mock_backend).then(lambda response: None)

        with pytest.raises(ConnectionError):
            await pending
        await asyncio.sleep(0)

        assert "Unhandled fetch error" in caplog.text

    @pytest.mark.asyncio
    async def test_wait_inside_running_loop_raises(self, mock_backend):
        with pytest.raises(RuntimeError, match="running event loop"):
            fetch("http://example.com/", backend=mock_backend).wait()


class TestFetchBlocking:
    """Test synchronous consumption without a running loop."""

    def test_wait_returns_response(self, make_reply) -> None:
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, make_reply("200 OK", "sync"))

        response = fetch("http://example.com/", backend=backend).wait()

        assert response.body == "sync"

    def test_wait_raises_failure(self) -> None:
        backend = MockNetworkBackend()
        backend.refuse("example.com", 80)

        with pytest.raises(RequestError):
            fetch("http://example.com/", backend=backend).wait()

    def test_wait_on_fan_out(self, make_reply) -> None:
        backend = MockNetworkBackend()
        backend.add_reply("a.test", 80, make_reply("200 OK", "a"), read_delay=0.02)
        backend.add_reply("b.test", 80, make_reply("200 OK", "b"))

        responses = fetch(["http://a.test/", "http://b.test/"], backend=backend).wait()

        assert [response.body for response in responses] == ["a", "b"]

    def test_then_without_loop_runs_synchronously(self, make_reply) -> None:
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, make_reply("404 Not Found", "nope"))
        results = []

        fetch("http://example.com/", backend=backend).then(results.append)

        assert results[0].status_code == 404

    def test_then_without_loop_reports_error(self) -> None:
        backend = MockNetworkBackend()
        backend.refuse("example.com", 80)
        errors = []

        fetch("http://example.com/", backend=backend).then(
            lambda response: None, errors.append
        )

        assert isinstance(errors[0], ConnectionError)
