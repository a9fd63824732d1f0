import pytest

from newsfeed import DefaultSubscriber, Item, Notifier


@pytest.fixture
def notifier():
    return Notifier("test-wire")


@pytest.fixture
def items():
    return [
        Item(id=1, headline="Storm hits coast", body="Thousands without power."),
        Item(id=2, headline="Markets rally", body="Stocks close at record high."),
        Item(id=3, headline="Election results", body="Turnout was the highest in decades."),
    ]


@pytest.fixture
def nyt():
    return DefaultSubscriber("New York Times")


@pytest.fixture
def wapo():
    return DefaultSubscriber("Washington Post")
