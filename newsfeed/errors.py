"""Exceptions raised by the newsfeed notifier and its subscribers."""

from typing import Optional


class NewsfeedError(Exception):
    """Base class for all newsfeed errors."""


class InvalidArgumentError(NewsfeedError, ValueError):
    """Raised when a constructor or operation receives an unusable argument."""


class InvalidStateError(NewsfeedError, RuntimeError):
    """Raised when an operation is called in a state that does not allow it."""


class DeliveryFailure(NewsfeedError):
    """Raised when a subscriber cannot process a delivered item."""

    def __init__(self, subscriber_name: str, item_id: Optional[int], reason: str = "") -> None:
        self.subscriber_name = subscriber_name
        self.item_id = item_id
        message = f"subscriber {subscriber_name!r} failed on item {item_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
