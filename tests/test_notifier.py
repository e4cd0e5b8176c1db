"""Tests for the Notifier publish/subscribe primitive."""

import pytest

from stepflow.utils.notifier import Notifier


class TestNotifier:
    def test_broadcast_reaches_subscribers_in_order(self):
        notifier = Notifier()
        calls = []
        notifier.subscribe(lambda v: calls.append(("a", v)))
        notifier.subscribe(lambda v: calls.append(("b", v)))

        notifier._broadcast(1)
        notifier._broadcast(2)

        assert calls == [("a", 1), ("b", 1), ("a", 2), ("b", 2)]

    def test_broadcast_without_subscribers(self):
        Notifier()._broadcast("nothing")

    def test_only_later_broadcasts_reach_new_subscriber(self):
        notifier = Notifier()
        notifier._broadcast("early")
        received = []
        notifier.subscribe(received.append)

        notifier._broadcast("late")

        assert received == ["late"]

    def test_unsubscribe(self):
        notifier = Notifier()
        received = []
        subscription = notifier.subscribe(received.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        notifier._broadcast("ignored")

        assert received == []
        assert notifier.subscriber_count == 0
        assert subscription.active is False

    def test_unsubscribe_during_broadcast_keeps_current_delivery(self):
        notifier = Notifier()
        received = []
        holder = {}

        def first(value):
            holder["second"].unsubscribe()

        notifier.subscribe(first)
        holder["second"] = notifier.subscribe(received.append)

        notifier._broadcast(1)
        notifier._broadcast(2)

        assert received == [1]

    def test_raising_callback_aborts_delivery(self):
        notifier = Notifier()
        received = []

        def boom(value):
            raise ValueError("bad subscriber")

        notifier.subscribe(received.append)
        notifier.subscribe(boom)
        notifier.subscribe(received.append)

        with pytest.raises(ValueError):
            notifier._broadcast("x")

        assert received == ["x"]
