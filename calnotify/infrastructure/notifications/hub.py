"""In-process live channel grouped by table and user."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import DefaultDict, Set

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from calnotify.application.ports import ChannelEvent

logger = logging.getLogger(__name__)

_ChannelKey = tuple[str, str]


class HubSubscription:
    """Receiving end of the hub for one ``(table, user_id)`` filter."""

    def __init__(self, hub: "RealtimeHub", key: _ChannelKey, buffer_size: int) -> None:
        self._hub = hub
        self.key = key
        send, receive = anyio.create_memory_object_stream(buffer_size)
        self._send: MemoryObjectSendStream[ChannelEvent] = send
        self._receive: MemoryObjectReceiveStream[ChannelEvent] = receive
        self.closed = False

    def __aiter__(self) -> AsyncIterator[ChannelEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChannelEvent]:
        async with self._receive:
            async for event in self._receive:
                yield event

    def deliver(self, event: ChannelEvent) -> bool:
        """Queue ``event`` without waiting; return ``False`` if it was dropped."""

        if self.closed:
            return False
        try:
            self._send.send_nowait(event)
        except anyio.WouldBlock:
            logger.warning("Subscriber buffer full for %s, disconnecting", self.key)
            return False
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            return False
        return True

    def cancel(self) -> None:
        """Stop receiving and release the slot in the hub."""

        if self.closed:
            return
        self.closed = True
        self._hub.unsubscribe(self)
        self._send.close()


class RealtimeHub:
    """Manage active live-channel subscriptions grouped by table and user."""

    def __init__(self, *, buffer_size: int = 100) -> None:
        self._buffer_size = buffer_size
        self._subscriptions: DefaultDict[_ChannelKey, Set[HubSubscription]] = defaultdict(set)

    def subscribe(self, table: str, user_id: str) -> HubSubscription:
        """Register a new subscription for ``user_id`` on ``table``."""

        key = (table, user_id)
        subscription = HubSubscription(self, key, self._buffer_size)
        self._subscriptions[key].add(subscription)
        return subscription

    def unsubscribe(self, subscription: HubSubscription) -> None:
        """Remove ``subscription`` from the pool for its key."""

        subscriptions = self._subscriptions.get(subscription.key)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.key, None)

    def subscriber_count(self, table: str, user_id: str) -> int:
        return len(self._subscriptions.get((table, user_id), ()))

    async def publish(self, table: str, user_id: str, event: ChannelEvent) -> int:
        """Deliver ``event`` to every subscriber of ``(table, user_id)``."""

        delivered = 0
        for subscription in list(self._subscriptions.get((table, user_id), set())):
            if subscription.deliver(event):
                delivered += 1
            else:
                subscription.cancel()
        return delivered

    def close_all(self) -> None:
        """Disconnect every subscriber, e.g. on shutdown."""

        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription.cancel()


realtime_hub = RealtimeHub()


__all__ = ["HubSubscription", "RealtimeHub", "realtime_hub"]
