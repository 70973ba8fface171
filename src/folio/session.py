"""
Module to browse a paginated catalog.

A catalog session binds a paginator, an accumulator store and a search overlay into the state
a presentation layer renders: the items to show, the pagination status and the search query.
Presentation code observes the session `state` and calls its action methods.
"""

import asyncio
import logging

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from folio.accumulator import AccumulatorStore
from folio.monitor import Monitor
from folio.observable import StateFlow
from folio.pagination import (
    EndReached,
    Error,
    FetchPort,
    Idle,
    InitialLoading,
    PageLoading,
    PaginationState,
    Paginator,
)
from folio.search import SearchOverlay
from operator import attrgetter
from typing import Any


_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    """
    State of a catalog session.

    Attributes:
    • items: items in the current view
    • pagination: state of the paginator
    • query: search query
    • search_active: whether search input is shown
    • next_page: cursor of the next page to fetch
    """

    items: Sequence[Any] = ()
    pagination: PaginationState = Idle()
    query: str = ""
    search_active: bool = False
    next_page: int = 1

    @property
    def is_initial_loading(self) -> bool:
        return isinstance(self.pagination, InitialLoading)

    @property
    def is_page_loading(self) -> bool:
        return isinstance(self.pagination, PageLoading)

    @property
    def error(self) -> str | None:
        """Message of the failure cause, if the last fetch failed."""
        if isinstance(self.pagination, Error):
            return str(self.pagination.cause) or type(self.pagination.cause).__name__
        return None

    @property
    def can_retry(self) -> bool:
        return isinstance(self.pagination, Error) and self.pagination.retryable

    @property
    def can_load_more(self) -> bool:
        return isinstance(self.pagination, Idle)

    @property
    def end_reached(self) -> bool:
        return isinstance(self.pagination, EndReached)


class CatalogSession:
    """
    Paginated, searchable view of a remote catalog.

    Parameters:
    • fetch: fetch port to request pages from
    • key: function that returns the identity key of an item  [item "id" attribute]
    • name: function that returns the display name of an item  [item "name" attribute]
    • initial: cursor of the first page  [1]
    • increment: cursor increment between pages  [1]
    • monitor: monitor to record fetch measurements  [global monitors]

    While a query is set, `load_more` still fetches into the accumulated items; the view shows
    the matching subset.
    """

    def __init__(
        self,
        fetch: FetchPort,
        *,
        key: Callable[[Any], Hashable] = attrgetter("id"),
        name: Callable[[Any], str] = attrgetter("name"),
        initial: int = 1,
        increment: int = 1,
        monitor: Monitor | None = None,
    ):
        self.store = AccumulatorStore(key=key)
        self.overlay = SearchOverlay(self.store, name=name)
        self.paginator = Paginator(
            fetch,
            self._on_success,
            initial=initial,
            increment=increment,
            name="catalog",
            monitor=monitor,
        )
        self._search_active = False
        self.state: StateFlow[SessionState] = StateFlow(self._snapshot())
        self._subscription = self.paginator.state.subscribe(self._publish, replay=False)

    def _on_success(self, items: Sequence[Any], next_page: int) -> None:
        self.store.append(items)

    def _snapshot(self) -> SessionState:
        return SessionState(
            items=tuple(self.overlay.view()),
            pagination=self.paginator.state.value,
            query=self.overlay.query,
            search_active=self._search_active,
            next_page=self.paginator.cursor,
        )

    def _publish(self, *args) -> None:
        self.state.value = self._snapshot()

    def start(self) -> asyncio.Task | None:
        """Load the first page, unless already loading or loaded."""
        return self.paginator.load_next()

    def load_more(self) -> asyncio.Task | None:
        """Load the next page, if the paginator is idle."""
        return self.paginator.load_next()

    def retry(self) -> asyncio.Task | None:
        """Retry the failed page, if the last fetch failed."""
        return self.paginator.retry()

    def refresh(self) -> asyncio.Task | None:
        """Discard accumulated items and load from the first page."""
        _logger.debug("refreshing catalog")
        self.paginator.reset()
        self.store.clear()
        self._publish()
        return self.paginator.load_next()

    def search(self, query: str) -> None:
        """Filter the view by query; an empty query shows all accumulated items."""
        self.overlay.set_query(query)
        self._publish()

    def clear_search(self) -> None:
        """Remove the filter and hide search input."""
        self.overlay.clear()
        self._search_active = False
        self._publish()

    def toggle_search(self) -> None:
        """Show or hide search input; hiding it removes the filter."""
        if self._search_active:
            self.clear_search()
        else:
            self._search_active = True
            self._publish()

    async def wait(self) -> None:
        """Wait for the page load in flight, if any, to complete."""
        await self.paginator.wait()

    def close(self) -> None:
        """Cancel any page load in flight and stop observing the paginator."""
        self._subscription.cancel()
        self.paginator.reset()
