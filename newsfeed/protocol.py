"""Observer capability set shared by every subscriber variant."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from newsfeed.item import Item


@runtime_checkable
class Observer(Protocol):
    """Anything a Notifier can deliver to: receive-item, receive-completion, receive-error."""

    def on_item(self, item: "Item") -> None: ...

    def on_completed(self) -> None: ...

    def on_error(self, error: BaseException) -> None: ...
