"""
Minimal synchronous publish/subscribe primitive.

Callbacks run in subscription order, inside the call stack of whoever
broadcasts. A callback that raises stops delivery to the callbacks after it.
"""

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Callback = Callable[[T], None]


class Subscription(Generic[T]):
    """Handle returned by Notifier.subscribe(); unsubscribe() is idempotent."""

    def __init__(self, notifier: "Notifier[T]", callback: Callback):
        self._notifier = notifier
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._notifier._remove(self)


class Notifier(Generic[T]):
    def __init__(self) -> None:
        self._subscriptions: List[Subscription[T]] = []

    def subscribe(self, callback: Callback) -> Subscription[T]:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _broadcast(self, value: T) -> None:
        # Iterate over a copy so subscribe/unsubscribe inside a callback
        # only affects later broadcasts.
        for subscription in list(self._subscriptions):
            subscription.callback(value)

    def _remove(self, subscription: Subscription[T]) -> None:
        self._subscriptions.remove(subscription)
