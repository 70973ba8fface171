"""Module to filter accumulated items by text query."""

from collections.abc import Callable, Sequence
from folio.accumulator import AccumulatorStore
from operator import attrgetter
from typing import Generic, TypeVar


V = TypeVar("V")


class SearchOverlay(Generic[V]):
    """
    A read-only view of an accumulator store, filtered by a text query.

    Parameters:
    • store: store of accumulated items
    • name: function that returns the display name of an item  [item "name" attribute]

    With an empty query, the view is the live contents of the store, reflecting ongoing
    pagination. Otherwise, the view contains the items whose display name contains the query,
    ignoring case, in store order. Setting a query never causes items to be fetched.
    """

    def __init__(self, store: AccumulatorStore, name: Callable[[V], str] = attrgetter("name")):
        self.store = store
        self.name = name
        self._query = ""
        self._cache: tuple[int, str, list[V]] | None = None

    @property
    def query(self) -> str:
        """The current query."""
        return self._query

    @property
    def active(self) -> bool:
        """Return if a query is filtering the view."""
        return self._query != ""

    def set_query(self, query: str) -> None:
        """Set the query. An empty string removes the filter."""
        self._query = query

    def clear(self) -> None:
        """Remove the filter."""
        self._query = ""

    def view(self) -> Sequence[V]:
        """Return the items in the current view."""
        if not self._query:
            return self.store.all()
        version = self.store.version
        if self._cache and self._cache[0] == version and self._cache[1] == self._query:
            return self._cache[2]
        needle = self._query.casefold()
        items = [item for item in self.store.snapshot() if needle in self.name(item).casefold()]
        self._cache = (version, self._query, items)
        return items
