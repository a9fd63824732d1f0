"""Abstract Subscriber: the observer role with a local projection of received items."""

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Tuple

from newsfeed.errors import DeliveryFailure, InvalidArgumentError, InvalidStateError
from newsfeed.observability import get_logger

if TYPE_CHECKING:
    from newsfeed.item import Item
    from newsfeed.notifier import Notifier
    from newsfeed.subscription import Subscription


class Subscriber(ABC):
    """
    Base class for subscribers. Each instance keeps the rendered form of every item
    delivered since its latest subscription; subclasses choose the rendering.
    """

    def __init__(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("subscriber name must be a non-empty string")
        self._name = name
        self._projection: List[str] = []
        self._token: Optional["Subscription"] = None
        self._last_error: Optional[BaseException] = None
        self._lock = threading.Lock()
        self._logger = get_logger(f"newsfeed.subscriber.{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def projection(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._projection)

    @property
    def subscription(self) -> Optional["Subscription"]:
        return self._token

    @property
    def is_subscribed(self) -> bool:
        return self._token is not None and self._token.active

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._last_error

    @abstractmethod
    def render(self, item: "Item") -> str:
        """Render an item for the projection. Must be pure and deterministic."""

    def on_item(self, item: "Item") -> None:
        rendered = self.render(item)
        with self._lock:
            self._projection.append(rendered)

    def on_completed(self) -> None:
        """The notifier will send nothing more: leave its roster, clear the projection."""
        token = self._token
        if token is not None:
            # no-op when the notifier already dropped us (close())
            token.release()
            self._token = None
        self._clear()
        self._logger.info("completed", extra={"subscriber": self._name})

    def on_error(self, error: BaseException) -> None:
        """Failures are fatal for this subscriber: re-raise as DeliveryFailure."""
        self._last_error = error
        if isinstance(error, DeliveryFailure):
            raise error
        raise DeliveryFailure(self._name, getattr(error, "item_id", None), str(error)) from error

    def subscribe(self, notifier: "Notifier") -> "Subscription":
        """
        Register with notifier (history is replayed into the projection).
        Switching to another notifier releases the previous subscription first.
        """
        current = self._token
        if current is not None and current.active and current.notifier is notifier:
            return current
        if notifier.closed:
            raise InvalidStateError(f"notifier {notifier.name!r} is closed")
        if current is not None:
            current.release()
            self._token = None
            self._clear()
        self._token = notifier.register(self)
        return self._token

    def unsubscribe(self) -> None:
        """Release the subscription and clear the projection."""
        token = self._token
        if token is None:
            raise InvalidStateError(f"subscriber {self._name!r} is not subscribed")
        token.release()
        self._token = None
        cleared = self._clear()
        self._logger.info(
            "unsubscribed",
            extra={"subscriber": self._name, "notifier": token.notifier.name, "cleared": cleared},
        )

    def _clear(self) -> int:
        with self._lock:
            cleared = len(self._projection)
            self._projection.clear()
        return cleared

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r})"
