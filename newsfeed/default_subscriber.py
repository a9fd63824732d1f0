"""Concrete Subscriber implementations."""

from newsfeed.item import Item, render
from newsfeed.subscriber import Subscriber


class DefaultSubscriber(Subscriber):
    """Keeps the full semicolon-joined rendering of each item."""

    def render(self, item: Item) -> str:
        return render(item)


class HeadlineSubscriber(Subscriber):
    """Keeps only id and headline, e.g. "3: Markets rally"."""

    def render(self, item: Item) -> str:
        return f"{item.id}: {item.headline}"
