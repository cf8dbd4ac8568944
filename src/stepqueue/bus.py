"""Notification bus: synchronous publish/subscribe of Results."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from stepqueue.results import Result

Listener = Callable[[Result], object]


@dataclass(eq=False)
class Subscription:
    """Handle returned by NotificationBus.subscribe."""

    listener: Listener
    kinds: frozenset[str] | None = None
    active: bool = True
    _bus: NotificationBus | None = field(default=None, repr=False)

    def matches(self, kind: str) -> bool:
        return self.kinds is None or kind in self.kinds

    def cancel(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(self)
        else:
            self.active = False


@dataclass
class ListenerFailure:
    """A listener raised while a result was being delivered."""

    subscription: Subscription
    result: Result
    error: Exception


class NotificationBus:
    """Delivers each published Result to matching subscriptions, in order.

    Publishing walks a snapshot of the subscription list, so listeners may
    subscribe or unsubscribe from inside a callback. A subscription removed
    mid-publish is skipped for the rest of that publish call.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self.diagnostics: list[ListenerFailure] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._subscriptions)

    def subscribe(
        self, listener: Listener, kinds: str | Iterable[str] | None = None
    ) -> Subscription:
        if kinds is not None:
            kinds = frozenset([kinds] if isinstance(kinds, str) else kinds)
        sub = Subscription(listener=listener, kinds=kinds, _bus=self)
        self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, result: Result) -> int:
        """Deliver `result`; returns how many listeners received it."""
        delivered = 0
        for sub in list(self._subscriptions):
            if not sub.active or not sub.matches(result.kind):
                continue
            try:
                sub.listener(result)
            except Exception as e:
                name = getattr(sub.listener, "__name__", repr(sub.listener))
                print(f"[bus] Listener {name} failed on {result.action.describe()}: {e}")
                self.diagnostics.append(ListenerFailure(sub, result, e))
                continue
            delivered += 1
        return delivered
