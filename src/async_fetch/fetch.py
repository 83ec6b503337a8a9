"""
Request orchestration for async_fetch.

``fetch`` accepts a URL, a Request, or an ordered collection of both and
returns a Fetch: a lazily started unit of work that can be awaited, waited
on from synchronous code, or consumed through success/error callbacks.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from .http11 import HTTP11Exchange
from .http_primitives import Request, Response
from .network import NetworkBackend
from .options import Options

logger = logging.getLogger(__name__)

Target = Union[str, Request]
SuccessHandler = Callable[[Any], Any]
ErrorHandler = Callable[[BaseException], Any]


class Fetch:
    """
    Lazily started, awaitable result of ``fetch``.

    Nothing runs until the instance is awaited, waited on, or given
    callbacks. The underlying task is created at most once, so repeated
    awaits share the same outcome.
    """

    def __init__(self, factory: Callable[[], Awaitable[Any]]) -> None:
        self._factory = factory
        self._task: Optional[asyncio.Future] = None

    def _ensure_task(self) -> asyncio.Future:
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        return self._task

    def __await__(self):
        return self._ensure_task().__await__()

    @property
    def started(self) -> bool:
        return self._task is not None

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def wait(self) -> Any:
        """
        Block until the result is available.

        Runs a fresh event loop, so it must be called from synchronous code.

        Raises:
            RuntimeError: If called while an event loop is running
            RequestError: If the request (or any joined request) failed
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._run())
        raise RuntimeError("Fetch.wait() cannot be called from a running event loop; use await")

    async def _run(self) -> Any:
        return await self

    def then(
        self,
        on_success: SuccessHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> "Fetch":
        """
        Register completion handlers.

        Inside a running event loop the unit is scheduled and the handlers
        fire when it completes. Without one, the unit runs to completion
        first and the handlers fire before this method returns.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                result = self.wait()
            except Exception as e:
                self._dispatch_error(e, on_error)
            else:
                on_success(result)
            return self

        self._ensure_task().add_done_callback(
            lambda task: self._dispatch(task, on_success, on_error)
        )
        return self

    __call__ = then

    def _dispatch(
        self,
        task: asyncio.Future,
        on_success: SuccessHandler,
        on_error: Optional[ErrorHandler],
    ) -> None:
        if task.cancelled():
            self._dispatch_error(asyncio.CancelledError(), on_error)
            return
        error = task.exception()
        if error is not None:
            self._dispatch_error(error, on_error)
        else:
            on_success(task.result())

    @staticmethod
    def _dispatch_error(error: BaseException, on_error: Optional[ErrorHandler]) -> None:
        if on_error is None:
            logger.error(f"Unhandled fetch error: {error}")
            return
        on_error(error)


def _lift(target: Target) -> Request:
    if isinstance(target, str):
        return Request.create(target, "GET")
    if isinstance(target, Request):
        return target
    raise TypeError(f"Expected a URL string or Request, got {type(target).__name__}")


async def _join(exchanges: List[HTTP11Exchange]) -> List[Response]:
    # gather keeps submission order and does not cancel siblings on failure
    results = await asyncio.gather(*(exchange.run() for exchange in exchanges))
    return list(results)


def fetch(
    target: Union[Target, Sequence[Target]],
    options: Optional[Options] = None,
    *,
    backend: Optional[NetworkBackend] = None,
    connect_timeout: Optional[float] = None,
    chunk_size: Optional[int] = None,
) -> Fetch:
    """
    Create a Fetch for one or many requests.

    Args:
        target: URL, Request, or a list/tuple mixing both; bare URLs
            become GET requests
        options: Per-call options (debug, cert, auth, port)
        backend: Network backend, the selector backend by default
        connect_timeout: Connect timeout override in seconds
        chunk_size: Read chunk size override in bytes

    Returns:
        A Fetch resolving to a Response, or to a list of Responses in input
        order when a collection was given. With several targets the first
        failure is raised while the other requests keep running.

    Raises:
        TypeError: If a target is neither a URL string nor a Request
    """
    def exchange(request: Request) -> HTTP11Exchange:
        return HTTP11Exchange(
            request,
            options,
            backend=backend,
            connect_timeout=connect_timeout,
            chunk_size=chunk_size,
        )

    if isinstance(target, (list, tuple)):
        requests = [_lift(item) for item in target]
        return Fetch(lambda: _join([exchange(request) for request in requests]))

    request = _lift(target)
    return Fetch(lambda: exchange(request).run())
