import logging
import threading

import pytest

from newsfeed import (
    DefaultSubscriber,
    InvalidArgumentError,
    InvalidStateError,
    Item,
    Notifier,
    render,
)


def test_replay_completeness(notifier, items, nyt):
    for item in items:
        notifier.post(item)

    nyt.subscribe(notifier)

    assert list(nyt.projection) == [render(i) for i in items]
    assert notifier.metrics.get_counter("replayed") == 3


def test_live_fan_out_reaches_every_subscriber(notifier, items, nyt, wapo):
    nyt.subscribe(notifier)
    wapo.subscribe(notifier)

    notifier.post(items[0])

    assert nyt.projection == (render(items[0]),)
    assert wapo.projection == (render(items[0]),)
    assert notifier.metrics.get_counter("deliveries") == 2


def test_fan_out_follows_roster_order(notifier, items):
    calls = []

    class Recording(DefaultSubscriber):
        def on_item(self, item):
            calls.append(self.name)
            super().on_item(item)

    first, second, third = Recording("first"), Recording("second"), Recording("third")
    for subscriber in (first, second, third):
        notifier.register(subscriber)

    notifier.post(items[0])

    assert calls == ["first", "second", "third"]
    assert notifier.subscribers == [first, second, third]


def test_idempotent_post(notifier, nyt):
    nyt.subscribe(notifier)
    notifier.post(Item(id=1, headline="original", body="x"))
    notifier.post(Item(id=1, headline="different", body="y"))

    assert nyt.projection == ("1;original;x",)
    assert len(notifier) == 1
    assert notifier.items[0].headline == "original"
    assert notifier.metrics.get_counter("items_rejected") == 1


@pytest.mark.parametrize("bad_id", [0, -1, -100])
def test_non_positive_id_rejected(notifier, nyt, bad_id):
    nyt.subscribe(notifier)
    notifier.post(Item(id=bad_id, headline="h", body="b"))

    assert nyt.projection == ()
    assert notifier.items == ()
    assert bad_id not in notifier


def test_post_requires_item(notifier):
    with pytest.raises(InvalidArgumentError):
        notifier.post({"id": 1, "headline": "h", "body": "b"})


def test_double_registration_does_not_duplicate(notifier, items, nyt):
    notifier.post(items[0])
    first = notifier.register(nyt)
    second = notifier.register(nyt)

    assert first is second
    assert notifier.subscriber_count == 1
    assert nyt.projection == (render(items[0]),)

    notifier.post(items[1])
    assert nyt.projection == (render(items[0]), render(items[1]))


def test_unregister_removes_only_bound_subscriber(notifier, items, nyt, wapo):
    token = notifier.register(nyt)
    notifier.register(wapo)

    assert token.release() is True
    notifier.post(items[0])

    assert not notifier.is_registered(nyt)
    assert notifier.is_registered(wapo)
    assert wapo.projection == (render(items[0]),)
    # unregister does not clear the projection itself
    assert nyt.projection == ()


def test_stale_token_does_not_remove_new_membership(notifier, items, nyt):
    old = notifier.register(nyt)
    old.release()
    new = notifier.register(nyt)

    assert old.release() is False
    assert notifier.unregister(old) is False
    assert notifier.is_registered(nyt)
    assert new.active


def test_failing_subscriber_is_isolated(notifier, items, wapo, caplog):
    class Exploding(DefaultSubscriber):
        def on_item(self, item):
            raise RuntimeError("boom")

    broken = Exploding("broken")
    notifier.register(broken)
    wapo.subscribe(notifier)

    notifier.post(items[0])

    assert wapo.projection == (render(items[0]),)
    assert notifier.items == (items[0],)
    assert notifier.subscriber_count == 2
    assert notifier.metrics.get_counter("delivery_failures") == 1
    assert "delivery_failed" in caplog.text
    assert broken.last_error is not None
    assert broken.last_error.item_id == 1
    assert isinstance(broken.last_error.__cause__, RuntimeError)


def test_handled_error_is_logged_as_warning(notifier, items, caplog):
    class Tolerant(DefaultSubscriber):
        def on_item(self, item):
            raise ValueError("bad item")

        def on_error(self, error):
            self.seen = error

    tolerant = Tolerant("tolerant")
    notifier.register(tolerant)
    notifier.post(items[0])

    assert tolerant.seen.item_id == 1
    assert "delivery_failed_handled" in caplog.text


def test_failure_during_replay_does_not_block_registration(notifier, items):
    class Exploding(DefaultSubscriber):
        def on_item(self, item):
            raise RuntimeError("boom")

    broken = Exploding("broken")
    notifier.post(items[0])

    token = notifier.register(broken)

    assert token.active
    assert notifier.is_registered(broken)


def test_close_signals_completion(notifier, items, nyt, wapo):
    notifier.post(items[0])
    nyt.subscribe(notifier)
    wapo.subscribe(notifier)

    notifier.close()

    assert notifier.closed
    assert notifier.subscriber_count == 0
    assert nyt.projection == ()
    assert wapo.projection == ()
    assert not nyt.is_subscribed
    with pytest.raises(InvalidStateError):
        notifier.post(items[1])
    with pytest.raises(InvalidStateError):
        notifier.register(nyt)
    notifier.close()


def test_reentrant_post_during_replay_is_delivered_once(notifier, items):
    class Forwarding(DefaultSubscriber):
        def on_item(self, item):
            super().on_item(item)
            if item.id == 1:
                notifier.post(Item(id=100, headline="follow-up", body=""))

    forwarding = Forwarding("forwarding")
    notifier.post(items[0])

    forwarding.subscribe(notifier)

    assert forwarding.projection == (render(items[0]), "100;follow-up;")
    assert [i.id for i in notifier.items] == [1, 100]


def test_concurrent_register_and_post_deliver_each_item_once():
    notifier = Notifier("concurrent")
    subscribers = [DefaultSubscriber(f"sub-{n}") for n in range(8)]
    start = threading.Event()

    def poster(offset):
        start.wait()
        for n in range(50):
            notifier.post(Item(id=offset + n, headline=f"h{offset + n}", body=""))

    def joiner(subscriber):
        start.wait()
        subscriber.subscribe(notifier)

    threads = [threading.Thread(target=poster, args=(offset,)) for offset in (1, 1001)]
    threads += [threading.Thread(target=joiner, args=(s,)) for s in subscribers]
    for thread in threads:
        thread.start()
    start.set()
    for thread in threads:
        thread.join()

    expected = [render(i) for i in notifier.items]
    assert len(expected) == 100
    for subscriber in subscribers:
        assert list(subscriber.projection) == expected


def test_contains_and_repr(notifier, items):
    notifier.post(items[0])
    assert items[0] in notifier
    assert 1 in notifier
    assert 2 not in notifier
    assert "test-wire" in repr(notifier)


def test_foreign_token_is_left_untouched(notifier, items, nyt):
    other = Notifier("other-wire")
    token = notifier.register(nyt)

    assert other.unregister(token) is False
    assert token.active
    assert notifier.is_registered(nyt)

    assert token.release() is True
    assert not notifier.is_registered(nyt)


def test_subscriber_unsubscribed_mid_fan_out_is_skipped(notifier, items):
    victim = DefaultSubscriber("victim")

    class Unsubscribing(DefaultSubscriber):
        def on_item(self, item):
            super().on_item(item)
            if victim.is_subscribed:
                victim.unsubscribe()

    first = Unsubscribing("first")
    first.subscribe(notifier)
    victim.subscribe(notifier)

    notifier.post(items[0])

    assert first.projection == (render(items[0]),)
    assert not victim.is_subscribed
    assert victim.projection == ()


def test_resubscribed_mid_fan_out_gets_item_once(notifier, items):
    victim = DefaultSubscriber("victim")

    class Bouncing(DefaultSubscriber):
        def on_item(self, item):
            super().on_item(item)
            victim.unsubscribe()
            victim.subscribe(notifier)

    Bouncing("bouncer").subscribe(notifier)
    victim.subscribe(notifier)

    notifier.post(items[0])

    assert victim.projection == (render(items[0]),)


def test_post_and_replay_are_logged(notifier, items, nyt, caplog):
    caplog.set_level(logging.DEBUG, logger="newsfeed.notifier.test-wire")
    notifier.post(items[0])
    nyt.subscribe(notifier)

    messages = [record.getMessage() for record in caplog.records]
    assert "item_posted" in messages
    assert "replayed" in messages
    assert "subscribed" in messages
