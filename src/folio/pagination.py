"""
Module to support pagination of items.

For an operation that returns a large set of items, it can be expensive to return all items in
a single response. In this case, the operation returns items in pages, requiring multiple
calls to retrieve all items.

Pages are requested through a fetch port: a coroutine function that accepts an integer cursor
and returns an outcome, which is either:

  • `Success`, containing the (possibly empty) sequence of items in the page, or
  • `Failure`, containing the exception that caused the fetch to fail.

The first page is requested with an initial cursor value; each subsequent page is requested
with the cursor advanced by a fixed increment. An empty page indicates there are no further
items to request.

A `Paginator` drives a fetch port one page at a time. It guarantees that at most one fetch is
in flight, advances its cursor only after a successful non-empty page, and reports its
progress through an observable `PaginationState`. It never raises fetch errors to its caller;
failures are expressed as an `Error` state that can be retried.
"""

import asyncio
import inspect
import logging
import wrapt

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from folio import monitor
from folio.monitor import Monitor
from folio.observable import StateFlow
from typing import Any, Generic, TypeVar


_logger = logging.getLogger(__name__)


# type aliases
Item = TypeVar("Item")
Cursor = int


class PaginationError(Exception):
    """Error raised if pagination could not be performed."""


@dataclass(frozen=True)
class Success(Generic[Item]):
    """Outcome of a successful page fetch."""

    items: Sequence[Item] = field(default_factory=list)

    def get(self) -> Sequence[Item]:
        """Return the items in the page."""
        return self.items


@dataclass(frozen=True)
class Failure:
    """Outcome of a failed page fetch."""

    cause: BaseException

    def get(self):
        """Raise the cause of the failure."""
        raise self.cause


Outcome = Success | Failure
FetchPort = Callable[[Cursor], Awaitable[Outcome]]


class PaginationState:
    """Base class of the states a paginator can be in."""


@dataclass(frozen=True)
class Idle(PaginationState):
    """No fetch is in flight; more pages may exist."""


@dataclass(frozen=True)
class InitialLoading(PaginationState):
    """A fetch is in flight for the initial cursor value."""


@dataclass(frozen=True)
class PageLoading(PaginationState):
    """A fetch is in flight for a subsequent cursor value."""


@dataclass(frozen=True)
class Error(PaginationState):
    """
    The last fetch failed. Items accumulated from prior fetches are retained.

    Attributes:
    • cause: the exception that caused the failure
    • retryable: whether the fetch can be retried
    """

    cause: BaseException
    retryable: bool = True


@dataclass(frozen=True)
class EndReached(PaginationState):
    """The last fetch returned no items; no further fetches are performed until reset."""


def fetch_port(wrapped):
    """
    Decorate a coroutine function that returns a sequence of items for a cursor, making it a
    fetch port. The decorated function returns `Success` with the items, or `Failure` with the
    exception the function raised. Outcomes returned by the function pass through unchanged.
    Cancellation is not captured.
    """

    @wrapt.decorator
    async def wrapper(wrapped, instance, args, kwargs):
        try:
            result = await wrapped(*args, **kwargs)
        except Exception as e:
            return Failure(e)
        if isinstance(result, (Success, Failure)):
            return result
        return Success(list(result))

    return wrapper(wrapped)


async def paginate(fetch: FetchPort, /, initial: Cursor = 1, increment: Cursor = 1):
    """
    Wraps a fetch port with an asynchronous generator that iterates through all items, page by
    page, until an empty page is returned. The cause of a failed fetch is raised.

    Parameters:
    • fetch: fetch port to request pages from
    • initial: cursor of the first page  [1]
    • increment: cursor increment between pages  [1]
    """
    cursor = initial
    while items := (await fetch(cursor)).get():
        for item in items:
            yield item
        cursor += increment


class Paginator(Generic[Item]):
    """
    Drives a fetch port one page at a time.

    Parameters:
    • fetch: fetch port to request pages from
    • on_success: called with items and next cursor after each non-empty page  [none]
    • initial: cursor of the first page  [1]
    • increment: cursor increment between pages  [1]
    • name: name used in log messages and measurement tags  ["paginator"]
    • monitor: monitor to record fetch measurements  [global monitors]

    The `on_success` callback can be a function or a coroutine function. It is applied before
    the paginator returns to `Idle`, so an observer reacting to `Idle` sees its effects. If it
    raises an exception, the page is treated as a failed fetch.

    The paginator must be driven from a single event loop. Its state is published through the
    `state` attribute, a `StateFlow` whose value is always the current `PaginationState`.
    """

    def __init__(
        self,
        fetch: FetchPort,
        on_success: Callable[[Sequence[Item], Cursor], Any] | None = None,
        *,
        initial: Cursor = 1,
        increment: Cursor = 1,
        name: str = "paginator",
        monitor: Monitor | None = None,
    ):
        if increment < 1:
            raise ValueError("increment must be positive")
        self.fetch = fetch
        self.on_success = on_success
        self.initial = initial
        self.increment = increment
        self.name = name
        self.monitor = monitor
        self.state: StateFlow[PaginationState] = StateFlow(Idle())
        self._cursor = initial
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def cursor(self) -> Cursor:
        """Cursor of the next page to fetch."""
        return self._cursor

    @property
    def is_loading(self) -> bool:
        """Return if a fetch is in flight."""
        return isinstance(self.state.value, (InitialLoading, PageLoading))

    def _transition(self, state: PaginationState) -> None:
        _logger.debug("%s: %s -> %s", self.name, self.state.value, state)
        self.state.value = state

    def load_next(self) -> asyncio.Task | None:
        """
        Start fetching the page at the current cursor, and return the task performing the
        fetch. If the paginator is not idle, nothing is done and None is returned.

        Must be called from a running event loop.
        """
        if not isinstance(self.state.value, Idle):
            return None
        loop = asyncio.get_running_loop()
        cursor = self._cursor
        generation = self._generation
        loading = InitialLoading() if cursor == self.initial else PageLoading()
        try:
            self._transition(loading)
        except BaseException:
            if generation == self._generation and self.state.value == loading:
                self._transition(Idle())
            raise
        if generation != self._generation or self.state.value != loading:
            return None  # reset or superseded by a subscriber
        self._task = loop.create_task(self._load(cursor, generation))
        return self._task

    def retry(self) -> asyncio.Task | None:
        """
        Retry a failed fetch for the same cursor, and return the task performing the fetch. If
        the paginator is not in the `Error` state, nothing is done and None is returned.
        """
        if not isinstance(self.state.value, Error):
            return None
        self._transition(Idle())
        return self.load_next()

    def reset(self) -> None:
        """
        Cancel any fetch in flight, restore the initial cursor and return to `Idle`. The
        completion of a cancelled fetch has no effect. Accumulated items are not affected.
        """
        self._generation += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._cursor = self.initial
        self._transition(Idle())

    async def wait(self) -> None:
        """Wait for the fetch in flight, if any, to complete."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def _fetch(self, cursor: Cursor) -> Sequence[Item]:
        async with monitor.measure_fetch(tags={"paginator": self.name}, monitor=self.monitor):
            outcome = await self.fetch(cursor)
            if not isinstance(outcome, (Success, Failure)):
                raise PaginationError(
                    f"fetch returned {type(outcome).__name__}; expected Success or Failure"
                )
            return outcome.get()

    async def _load(self, cursor: Cursor, generation: int) -> None:
        _logger.debug("%s: fetching cursor %s", self.name, cursor)
        try:
            items = await self._fetch(cursor)
            if generation != self._generation:
                return
            if not items:
                self._transition(EndReached())
                return
            next_cursor = cursor + self.increment
            if self.on_success is not None:
                result = self.on_success(items, next_cursor)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            if generation == self._generation:
                _logger.warning("%s: fetch of cursor %s failed: %s", self.name, cursor, e)
                self._transition(Error(e, retryable=True))
            return
        if generation != self._generation:
            return
        self._cursor = next_cursor
        self._transition(Idle())
