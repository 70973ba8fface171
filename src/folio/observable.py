"""
Module to observe changing state.

A state flow holds a single current value. Assigning a new value delivers it synchronously
to every subscribed callback, in subscription order, before the assignment returns. A value
assigned by a callback during delivery is queued and delivered once the current value has
reached every subscriber, so all subscribers observe values in assignment order. Asynchronous
consumers can iterate a stream of values instead of subscribing a callback.
"""

import asyncio
import logging

from collections import deque
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar


_logger = logging.getLogger(__name__)


T = TypeVar("T")


class Subscription:
    """
    Handle returned from subscribing to a state flow. Calling it (or `cancel`) removes the
    subscription; this is idempotent. Can be used as a context manager.
    """

    __slots__ = {"_flow", "_callback"}

    def __init__(self, flow: "StateFlow", callback: Callable):
        self._flow = flow
        self._callback = callback

    def cancel(self) -> None:
        """Remove the subscription."""
        if self._flow is not None:
            self._flow._unsubscribe(self._callback)
        self._flow = None

    __call__ = cancel

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.cancel()


class StateFlow(Generic[T]):
    """
    An observable holder of a current value.

    Parameters:
    • initial: the initial value

    Unlike an event emitter, the current value is always retrievable through the `value`
    attribute. Assigning a value equal to the current one is still delivered to subscribers;
    callers that want change detection compare for themselves.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._callbacks: list[Callable[[T], None]] = []
        self._pending: deque[T] = deque()
        self._delivering = False

    @property
    def value(self) -> T:
        """The current value."""
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self._value = value
        self._pending.append(value)
        if self._delivering:  # assigned from a callback; delivered by the outer assignment
            return
        self._delivering = True
        try:
            while self._pending:
                pending = self._pending.popleft()
                for callback in list(self._callbacks):
                    callback(pending)
        finally:
            self._pending.clear()
            self._delivering = False

    def subscribe(self, callback: Callable[[T], None], *, replay: bool = True) -> Subscription:
        """
        Subscribe a callback to receive values.

        Parameters:
        • callback: function called with each new value
        • replay: immediately call the callback with the current value  [True]

        Exceptions raised by a callback propagate to the code that assigned the value.
        """
        self._callbacks.append(callback)
        if replay:
            callback(self._value)
        return Subscription(self, callback)

    def _unsubscribe(self, callback: Callable) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    @property
    def subscribers(self) -> int:
        """Number of active subscriptions."""
        return len(self._callbacks)

    async def stream(self, *, replay: bool = True) -> AsyncIterator[T]:
        """
        Return an asynchronous iterator of values. Every assigned value is queued, so a slow
        consumer still receives all transitions in order. The subscription is removed when the
        iterator is closed.

        Parameters:
        • replay: yield the current value first  [True]
        """
        queue: asyncio.Queue[T] = asyncio.Queue()
        subscription = self.subscribe(queue.put_nowait, replay=replay)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.cancel()
            _logger.debug("state stream closed")

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r})"
