"""In-memory news notifier with replay for late subscribers (observer pattern, no broker)."""

from newsfeed.item import Item, render
from newsfeed.errors import (
    DeliveryFailure,
    InvalidArgumentError,
    InvalidStateError,
    NewsfeedError,
)
from newsfeed.protocol import Observer
from newsfeed.subscription import Subscription
from newsfeed.notifier import Notifier
from newsfeed.subscriber import Subscriber
from newsfeed.default_subscriber import DefaultSubscriber, HeadlineSubscriber
from newsfeed.queued_subscriber import QueuedSubscriber

__all__ = [
    "Item",
    "render",
    "NewsfeedError",
    "InvalidArgumentError",
    "InvalidStateError",
    "DeliveryFailure",
    "Observer",
    "Subscription",
    "Notifier",
    "Subscriber",
    "DefaultSubscriber",
    "HeadlineSubscriber",
    "QueuedSubscriber",
]
