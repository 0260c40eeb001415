"""
Publish/subscribe channels.

Two subscription modes:
- ``Channel``: fan-out only. Subscribers see values published after they
  subscribed (options, loading state).
- ``ReplayChannel``: also replays the last value to each new subscriber
  (payloads, item lists).

``NotificationBus`` keys fan-out channels by alias; the store publishes every
origin update to all aliases of that origin.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[T], None]


# -----------------------------------------------------------------------------
# Subscription
# -----------------------------------------------------------------------------
class Subscription:
    """Handle returned by ``subscribe``. Calling it unsubscribes."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Optional[Callable[[], None]] = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def cancel(self) -> None:
        if self._cancel is not None:
            cancel, self._cancel = self._cancel, None
            cancel()

    __call__ = cancel


# -----------------------------------------------------------------------------
# Channels
# -----------------------------------------------------------------------------
class Channel(Generic[T]):

    def __init__(self) -> None:
        self._callbacks: List[Callback] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callback) -> Subscription:
        return self._add(callback)

    def once(self, callback: Callback) -> Subscription:
        """Deliver only the next published value to ``callback``."""
        subscription: Optional[Subscription] = None

        def wrapper(value: T) -> None:
            if subscription is not None:
                subscription.cancel()
            callback(value)

        subscription = self._add(wrapper)
        return subscription

    def publish(self, value: T) -> None:
        # snapshot: callbacks may (un)subscribe while being notified
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Subscriber %r failed", callback)

    async def next(self) -> T:
        """Wait for the next published value."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def resolve(value: T) -> None:
            if not future.done():
                future.set_result(value)

        subscription = Channel.once(self, resolve)
        try:
            return await future
        finally:
            subscription.cancel()

    def _add(self, callback: Callback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self._remove(callback))

    def _remove(self, callback: Callback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass


class ReplayChannel(Channel[T]):
    """Channel that remembers its last value and replays it on subscribe."""

    _MISSING = object()

    def __init__(self, *initial: T) -> None:
        super().__init__()
        self._value = initial[0] if initial else self._MISSING

    @property
    def has_value(self) -> bool:
        return self._value is not self._MISSING

    @property
    def value(self) -> Optional[T]:
        return None if self._value is self._MISSING else self._value

    def reset(self) -> None:
        self._value = self._MISSING

    def subscribe(self, callback: Callback) -> Subscription:
        subscription = self._add(callback)
        if self.has_value:
            callback(self._value)
        return subscription

    def once(self, callback: Callback) -> Subscription:
        if self.has_value:
            callback(self._value)
            return Subscription(lambda: None)
        return super().once(callback)

    def publish(self, value: T) -> None:
        self._value = value
        super().publish(value)

    async def first(self) -> T:
        """The replayed value, or the next one published."""
        if self.has_value:
            return self._value
        return await self.next()


# -----------------------------------------------------------------------------
# Notification bus
# -----------------------------------------------------------------------------
class NotificationBus:

    def __init__(self) -> None:
        self._channels: Dict[str, Channel] = {}

    def subscribe(self, alias: str, callback: Callback) -> Subscription:
        channel = self._channels.setdefault(alias, Channel())
        inner = channel.subscribe(callback)

        def cancel() -> None:
            inner.cancel()
            if channel.subscriber_count == 0 and self._channels.get(alias) is channel:
                del self._channels[alias]

        return Subscription(cancel)

    def publish(self, alias: str, payload: dict) -> None:
        channel = self._channels.get(alias)
        if channel is not None:
            channel.publish(payload)

    def has_subscribers(self, alias: str) -> bool:
        channel = self._channels.get(alias)
        return channel is not None and channel.subscriber_count > 0

    def clear(self) -> None:
        self._channels.clear()
