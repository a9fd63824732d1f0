"""Notifier: owns the item log and subscriber roster; replays history and fans out new items."""

import threading
from typing import TYPE_CHECKING, Dict, List, Set, Tuple, Union

from newsfeed.errors import DeliveryFailure, InvalidArgumentError, InvalidStateError
from newsfeed.item import Item
from newsfeed.observability import Metrics, get_logger
from newsfeed.subscription import Subscription

if TYPE_CHECKING:
    from newsfeed.protocol import Observer


def _subscriber_name(subscriber: "Observer") -> str:
    return getattr(subscriber, "name", None) or repr(subscriber)


class Notifier:
    """
    In-memory subject. Keeps an append-only log of items (unique positive ids)
    and an ordered roster of subscribers.

    The state lock guards log and roster and is only held to read or append them.
    The delivery lock (re-entrant) serialises snapshot-then-deliver for post,
    register and close, so every subscriber sees items in log order and replay
    always precedes live delivery.
    """

    def __init__(self, name: str = "notifier") -> None:
        self._name = name
        self._log: List[Item] = []
        self._ids: Set[int] = set()
        # id(subscriber) -> (subscriber, token); dict order is delivery order
        self._roster: Dict[int, Tuple["Observer", Subscription]] = {}
        self._joining: Dict[int, Subscription] = {}
        self._closed = False
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()
        self._metrics = Metrics()
        self._logger = get_logger(f"newsfeed.notifier.{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def items(self) -> Tuple[Item, ...]:
        """Copy of the log, oldest first."""
        with self._lock:
            return tuple(self._log)

    @property
    def subscribers(self) -> List["Observer"]:
        """Copy of the roster in delivery order."""
        with self._lock:
            return [subscriber for subscriber, _ in self._roster.values()]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._roster)

    def is_registered(self, subscriber: "Observer") -> bool:
        with self._lock:
            return id(subscriber) in self._roster

    def register(self, subscriber: "Observer") -> Subscription:
        """
        Replay the whole log to subscriber, then add it to the roster.
        A subscriber already on the roster gets its existing token back with no replay.
        """
        key = id(subscriber)
        with self._delivery_lock:
            with self._lock:
                if self._closed:
                    raise InvalidStateError(f"notifier {self._name!r} is closed")
                entry = self._roster.get(key)
                if entry is not None:
                    return entry[1]
                if key in self._joining:
                    return self._joining[key]
                token = Subscription(self, subscriber)
                self._joining[key] = token

            replayed = 0
            try:
                # Catch up until the log stops growing, then join the roster under the
                # same lock acquisition so no post is both replayed and delivered live.
                while True:
                    with self._lock:
                        pending = self._log[replayed:]
                        if self._closed:
                            # closed from inside a replay callback
                            token.mark_released()
                            count = len(self._roster)
                            break
                        if not pending:
                            self._roster[key] = (subscriber, token)
                            count = len(self._roster)
                            break
                    for item in pending:
                        self._deliver(subscriber, item)
                    replayed += len(pending)
            finally:
                with self._lock:
                    self._joining.pop(key, None)

        if replayed:
            self._logger.debug(
                "replayed",
                extra={
                    "notifier": self._name,
                    "subscriber": _subscriber_name(subscriber),
                    "replayed": replayed,
                },
            )
        self._metrics.increment("replayed", replayed)
        self._metrics.set_gauge("subscribers", count)
        self._logger.info(
            "subscribed",
            extra={
                "notifier": self._name,
                "subscriber": _subscriber_name(subscriber),
                "replayed": replayed,
                "subscriber_count": count,
            },
        )
        return token

    def unregister(self, token: Subscription) -> bool:
        """Remove the subscriber bound to token. Normally reached via token.release()."""
        if token.notifier is not self:
            return False
        key = id(token.subscriber)
        with self._delivery_lock:
            with self._lock:
                entry = self._roster.get(key)
                if entry is None or entry[1] is not token:
                    return False
                token.mark_released()
                del self._roster[key]
                count = len(self._roster)
        self._metrics.set_gauge("subscribers", count)
        self._logger.info(
            "unsubscribed",
            extra={
                "notifier": self._name,
                "subscriber": _subscriber_name(token.subscriber),
                "subscriber_count": count,
            },
        )
        return True

    def post(self, item: Item) -> None:
        """
        Append item to the log and deliver it to every current subscriber in roster order.
        Non-positive or already-logged ids are ignored.
        """
        if not isinstance(item, Item):
            raise InvalidArgumentError(f"expected Item, got {type(item).__name__}")
        entries: List[Tuple["Observer", Subscription]] = []
        with self._delivery_lock:
            with self._lock:
                if self._closed:
                    raise InvalidStateError(f"notifier {self._name!r} is closed")
                rejected = item.id <= 0 or item.id in self._ids
                if not rejected:
                    self._log.append(item)
                    self._ids.add(item.id)
                    entries = list(self._roster.values())
            if rejected:
                self._metrics.increment("items_rejected")
                self._logger.debug(
                    "item_rejected",
                    extra={"notifier": self._name, "item_id": item.id},
                )
                return

            self._metrics.increment("items_posted")
            self._logger.info(
                "item_posted",
                extra={
                    "notifier": self._name,
                    "item_id": item.id,
                    "subscriber_count": len(entries),
                },
            )
            for subscriber, token in entries:
                # skip anyone unsubscribed by an earlier callback in this fan-out
                with self._lock:
                    entry = self._roster.get(id(subscriber))
                if entry is None or entry[1] is not token:
                    continue
                self._deliver(subscriber, item)

    def close(self) -> None:
        """End of transmission: drop every subscriber, then signal on_completed to each."""
        with self._delivery_lock:
            with self._lock:
                if self._closed:
                    return
                self._closed = True
                entries = list(self._roster.values())
                self._roster.clear()
            for _, token in entries:
                token.mark_released()
            self._metrics.set_gauge("subscribers", 0)
            self._logger.info(
                "notifier_closed",
                extra={"notifier": self._name, "subscriber_count": len(entries)},
            )
            for subscriber, _ in entries:
                try:
                    subscriber.on_completed()
                except Exception as e:
                    self._logger.exception(
                        "completion_failed",
                        extra={"subscriber": _subscriber_name(subscriber), "error": str(e)},
                    )

    def _deliver(self, subscriber: "Observer", item: Item) -> None:
        """Deliver one item; a failure is routed to the subscriber's on_error and never reaches other subscribers."""
        try:
            subscriber.on_item(item)
        except Exception as e:
            self._metrics.increment("delivery_failures")
            failure = DeliveryFailure(_subscriber_name(subscriber), item.id, str(e))
            failure.__cause__ = e
            try:
                subscriber.on_error(failure)
            except Exception as raised:
                self._logger.exception(
                    "delivery_failed",
                    extra={
                        "subscriber": _subscriber_name(subscriber),
                        "item_id": item.id,
                        "error": str(raised),
                    },
                )
            else:
                self._logger.warning(
                    "delivery_failed_handled",
                    extra={
                        "subscriber": _subscriber_name(subscriber),
                        "item_id": item.id,
                        "error": str(e),
                    },
                )
            return
        self._metrics.increment("deliveries")

    def __contains__(self, item: Union[Item, int]) -> bool:
        item_id = item.id if isinstance(item, Item) else item
        with self._lock:
            return item_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._log)

    def __repr__(self) -> str:
        return f"Notifier(name={self._name!r}, items={len(self._log)}, subscribers={len(self._roster)})"
