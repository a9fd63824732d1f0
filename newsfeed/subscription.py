"""Subscription token: the handle whose release removes a subscriber from a notifier."""

import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from newsfeed.notifier import Notifier
    from newsfeed.protocol import Observer


class Subscription:
    """
    Returned by Notifier.register(). Releasing it removes the bound subscriber
    from the roster exactly once; later releases are no-ops.
    """

    def __init__(self, notifier: "Notifier", subscriber: "Observer") -> None:
        self._notifier = notifier
        self._subscriber = subscriber
        self._released = False
        self._lock = threading.Lock()

    @property
    def notifier(self) -> "Notifier":
        return self._notifier

    @property
    def subscriber(self) -> "Observer":
        return self._subscriber

    @property
    def released(self) -> bool:
        return self._released

    @property
    def active(self) -> bool:
        return not self._released

    def release(self) -> bool:
        """Remove the subscriber from the notifier. Returns False if already released."""
        with self._lock:
            if self._released:
                return False
            self._released = True
        self._notifier.unregister(self)
        return True

    def mark_released(self) -> None:
        """Called by the notifier when it drops the membership itself (close())."""
        with self._lock:
            self._released = True

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.release()
        return None

    def __repr__(self) -> str:
        state = "released" if self._released else "active"
        return f"Subscription(notifier={self._notifier.name!r}, subscriber={self._subscriber!r}, {state})"
