"""Boundary interfaces towards the native VPN side.

Two channels exist: a request/response control transport and a broadcast
feed of raw stage tokens.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .commands import Command
from .exceptions import FeedClosedError


class ControlTransport(ABC):
    """Request/response channel to the native side."""

    @abstractmethod
    async def invoke(self, command: Command) -> Any:
        """
        Send a command and wait for the native answer.

        Args:
            command: Command built by VPNCommandFactory

        Returns:
            Raw answer of the native side, may be None

        Raises:
            TransportError: If the native side rejects the command
        """


class _Closed:
    def __init__(self, error: Optional[BaseException]):
        self.error = error


class Subscription:
    """Async iterator over raw stage tokens delivered by a StageEventFeed."""

    def __init__(self, feed: 'StageEventFeed'):
        self._feed = feed
        self._queue: asyncio.Queue = asyncio.Queue()
        self.active = True

    def _deliver(self, item: Any) -> None:
        if self.active:
            self._queue.put_nowait(item)

    def unsubscribe(self) -> None:
        """Stop receiving tokens, a pending iteration ends normally."""
        if not self.active:
            return
        self.active = False
        self._feed._remove(self)
        self._queue.put_nowait(_Closed(None))

    def __aiter__(self) -> 'Subscription':
        return self

    async def __anext__(self) -> str:
        item = await self._queue.get()
        if isinstance(item, _Closed):
            self.active = False
            if item.error is not None:
                raise item.error
            raise StopAsyncIteration
        return item


class StageEventFeed:
    """Broadcast feed of raw stage tokens, every subscriber sees every token."""

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self.closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        if self.closed:
            raise FeedClosedError("Stage event feed is closed")
        subscription = Subscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, raw: Optional[str]) -> None:
        for subscription in list(self._subscriptions):
            subscription._deliver(raw)

    def close(self, error: Optional[BaseException] = None) -> None:
        """End every subscription, raising error in subscribers if given."""
        self.closed = True
        for subscription in list(self._subscriptions):
            subscription._deliver(_Closed(error))
        self._subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
