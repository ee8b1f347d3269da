"""Multi-subscriber broadcast channels for status and printer-state events.

A channel has no history. Only handlers registered when :meth:`Broadcast.publish`
runs see the value, so observers must subscribe before triggering the action
they want to watch.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Generic, Iterator, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription(Generic[T]):
    """Handle for one registered handler; cancel it to stop receiving."""

    def __init__(self, channel: "Broadcast[T]", handler: Callable[[T], Any]) -> None:
        self._channel = channel
        self._handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._channel._remove(self)

    def _deliver(self, value: T) -> None:
        if self._active:
            self._handler(value)

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class QueueSubscription(Subscription[T]):
    """Subscription that buffers values for a consumer thread."""

    def __init__(self, channel: "Broadcast[T]") -> None:
        self._queue: queue.Queue[T] = queue.Queue()
        super().__init__(channel, self._queue.put)

    def get(self, timeout: float | None = None) -> T:
        """Next value; raises :class:`queue.Empty` when ``timeout`` runs out."""
        return self._queue.get(timeout=timeout)

    def drain(self) -> list[T]:
        items: list[T] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def __iter__(self) -> Iterator[T]:
        while self.active or not self._queue.empty():
            try:
                yield self._queue.get(timeout=0.1)
            except queue.Empty:
                continue


class Broadcast(Generic[T]):
    """Fan a value out to every current subscriber, in publication order.

    Handlers run on the publishing thread. A handler that raises is logged
    and does not keep the value from the remaining handlers.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Subscription[T]] = []
        self._lock = threading.Lock()
        # Serializes deliveries so every subscriber sees the same order.
        self._publish_lock = threading.RLock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, handler: Callable[[T], Any]) -> Subscription[T]:
        subscription = Subscription(self, handler)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def listen(self) -> QueueSubscription[T]:
        """Subscribe with a queue, for consumers that block on the next value."""
        subscription: QueueSubscription[T] = QueueSubscription(self)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def publish(self, value: T) -> None:
        with self._publish_lock:
            with self._lock:
                subscribers = list(self._subscribers)
            for subscription in subscribers:
                try:
                    subscription._deliver(value)
                except Exception as e:
                    log.error(
                        f"Subscriber {subscription._handler!r} on '{self.name}' raised for {value!r}: {e}",
                        exc_info=True,
                    )

    def _remove(self, subscription: Subscription[T]) -> None:
        with self._lock:
            try:
                self._subscribers.remove(subscription)
            except ValueError:
                pass
