"""Example: two newspapers following one notifier, the second joining late."""

import logging

from newsfeed import DefaultSubscriber, Item, Notifier

logging.basicConfig(level=logging.INFO)


def main() -> None:
    notifier = Notifier("wire")

    nyt = DefaultSubscriber("New York Times")
    wapo = DefaultSubscriber("Washington Post")

    notifier.post(Item(id=1, headline="Storm hits coast", body="Thousands without power."))
    nyt.subscribe(notifier)
    notifier.post(Item(id=2, headline="Markets rally", body="Stocks close at record high."))
    wapo.subscribe(notifier)
    notifier.post(Item(id=3, headline="Election results", body="Turnout was the highest in decades."))

    for subscriber in (nyt, wapo):
        print(subscriber.name, list(subscriber.projection))

    nyt.unsubscribe()
    print(nyt.name, list(nyt.projection))

    notifier.close()


if __name__ == "__main__":
    main()
