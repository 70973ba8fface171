"""Module to accumulate paginated items in memory."""

import logging
import threading

from collections.abc import Callable, Hashable, Iterable, Iterator, Sequence
from operator import attrgetter
from typing import Generic, TypeVar


_logger = logging.getLogger(__name__)


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class AccumulatorStore(Generic[K, V]):
    """
    An ordered collection of items, unique by identity key, to which fetched pages are
    appended.

    Parameters:
    • key: function that returns the identity key of an item  [item "id" attribute]

    Items are kept in arrival order. Once appended, an item is never reordered or removed,
    except by clearing the store. Mutations are serialized; `snapshot` returns a stable copy
    that is safe to read from another thread.
    """

    def __init__(self, key: Callable[[V], K] = attrgetter("id")):
        self.key = key
        self._items: list[V] = []
        self._keys: set[K] = set()
        self._version = 0
        self._lock = threading.Lock()

    @property
    def version(self) -> int:
        """Number of mutations that changed the contents of the store."""
        return self._version

    def append(self, items: Iterable[V]) -> None:
        """
        Append items to the store, in order. Items whose identity key is already in the store,
        including repeats within the items being appended, are skipped.
        """
        with self._lock:
            added = 0
            for item in items:
                key = self.key(item)
                if key in self._keys:
                    continue
                self._keys.add(key)
                self._items.append(item)
                added += 1
            if added:
                self._version += 1
        _logger.debug("appended %d items; %d accumulated", added, len(self._items))

    def all(self) -> Sequence[V]:
        """
        Return the live ordered sequence of items. The returned list is owned by the store and
        reflects subsequent appends; it must not be modified.
        """
        return self._items

    def snapshot(self) -> tuple[V, ...]:
        """Return a copy of the items as they are now."""
        with self._lock:
            return tuple(self._items)

    def clear(self) -> None:
        """Remove all items from the store."""
        with self._lock:
            if self._items:
                self._version += 1
            self._items.clear()
            self._keys.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[V]:
        return iter(self.snapshot())

    def __contains__(self, item: V) -> bool:
        return self.key(item) in self._keys
