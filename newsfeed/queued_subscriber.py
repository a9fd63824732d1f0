"""Queued subscriber: on_item enqueues, a worker thread applies items to the projection in order."""

import queue
import threading
from typing import TYPE_CHECKING, Optional, Tuple

from newsfeed.config import get_settings
from newsfeed.default_subscriber import DefaultSubscriber
from newsfeed.errors import DeliveryFailure, InvalidStateError

if TYPE_CHECKING:
    from newsfeed.item import Item

# Sentinel to unblock the worker when stopping
_DRAIN_SENTINEL = None


class QueuedSubscriber(DefaultSubscriber):
    """
    Subscriber with its own FIFO queue (queue.Queue) and worker thread, so the
    notifier's fan-out never waits on this subscriber's rendering. A single
    worker keeps deliveries to this subscriber in post order.

    The queue is unbounded. Clearing the projection (unsubscribe, completion)
    discards anything still queued from the previous subscription.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._queue: "queue.Queue[Optional[Tuple[int, Item]]]" = queue.Queue()
        self._generation = 0
        self._pending = 0
        self._idle = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        """Start the worker thread (idempotent)."""
        if self.running:
            return
        self._closed = False
        self._worker = threading.Thread(
            target=self._drain_loop,
            name=f"newsfeed-{self.name}",
            daemon=True,
        )
        self._worker.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop accepting items and let the worker finish what is already queued.
        The worker handle is kept until the thread has really exited, so start()
        never runs two workers side by side.
        """
        stopping = self._closed
        self._closed = True
        if not self.running:
            self._worker = None
            return
        if not stopping:
            self._queue.put(_DRAIN_SENTINEL)
        self._worker.join(timeout)
        if not self._worker.is_alive():
            self._worker = None

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued item is applied. Returns False on timeout."""
        if timeout is None:
            timeout = get_settings().flush_timeout_sec
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def on_item(self, item: "Item") -> None:
        """Enqueue item tagged with the current subscription generation."""
        if self._closed:
            raise InvalidStateError(f"subscriber {self.name!r} is stopped")
        with self._lock:
            generation = self._generation
        with self._idle:
            self._pending += 1
        self._queue.put((generation, item))

    def _drain_loop(self) -> None:
        while True:
            entry = self._queue.get()
            if entry is _DRAIN_SENTINEL:
                break
            generation, item = entry
            try:
                rendered = self.render(item)
                with self._lock:
                    if generation == self._generation:
                        self._projection.append(rendered)
            except Exception as e:
                failure = DeliveryFailure(self.name, item.id, str(e))
                failure.__cause__ = e
                try:
                    self.on_error(failure)
                except Exception:
                    self._logger.exception(
                        "drain_error",
                        extra={"subscriber": self.name, "item_id": item.id, "error": str(e)},
                    )
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()

    def _clear(self) -> int:
        with self._lock:
            self._generation += 1
            cleared = len(self._projection)
            self._projection.clear()
        return cleared
