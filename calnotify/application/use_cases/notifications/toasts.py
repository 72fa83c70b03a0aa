"""Bounded, auto-expiring presentation queue derived from the store."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable

from calnotify.application.use_cases.notifications.scheduler import ExpiryScheduler
from calnotify.application.use_cases.notifications.store import NotificationStore
from calnotify.config import get_settings
from calnotify.domain.entities import Notification, ToastItem

logger = logging.getLogger(__name__)

ToastListener = Callable[["ToastQueue"], None]


class ToastQueue:
    """Show newly arrived unread notifications as short-lived toasts.

    Each derivation pass admits at most ``max_per_pass`` of the newest unseen
    unread notifications; older unseen ones from the same burst are marked as
    shown so a backlog never trickles out later. At most ``max_per_pass``
    toasts are visible at once, the oldest one making room for a newcomer.
    A notification id is admitted at most once per ``shown`` set, which a
    caller may share between successive queues.
    """

    def __init__(
        self,
        store: NotificationStore,
        *,
        scheduler: ExpiryScheduler | None = None,
        lifetime: float | None = None,
        max_per_pass: int | None = None,
        shown: set[str] | None = None,
    ) -> None:
        config = get_settings()
        self._store = store
        self._scheduler = scheduler or ExpiryScheduler()
        self._lifetime = lifetime if lifetime is not None else config.toast_lifetime_seconds
        self._max_per_pass = max_per_pass or config.toast_max_per_pass
        self._items: OrderedDict[str, ToastItem] = OrderedDict()
        # Shared with later queues of the same session so ids stay admitted once.
        self._shown: set[str] = shown if shown is not None else set()
        self._listeners: list[ToastListener] = []
        self._detach: Callable[[], None] | None = store.add_listener(self._on_store_change)
        self.derive()

    @property
    def items(self) -> list[ToastItem]:
        """Visible toasts in admission order."""

        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._items

    def add_listener(self, listener: ToastListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def derive(self) -> list[ToastItem]:
        """Admit unread notifications not shown before; return the new toasts."""

        candidates: list[Notification] = [
            n for n in self._store.notifications if not n.is_read and n.id not in self._shown
        ]
        if not candidates:
            return []

        # Candidates are newest first; admit oldest first so eviction order holds.
        admitted = [self._admit(n) for n in reversed(candidates[: self._max_per_pass])]
        for skipped in candidates[self._max_per_pass :]:
            self._shown.add(skipped.id)
        if len(candidates) > self._max_per_pass:
            logger.debug(
                "Suppressed %d toasts from a burst", len(candidates) - self._max_per_pass
            )

        while len(self._items) > self._max_per_pass:
            oldest = next(iter(self._items))
            self._remove(oldest)

        self._notify()
        return admitted

    def dismiss(self, notification_id: str) -> bool:
        """Remove a toast at once and cancel its expiry."""

        if notification_id not in self._items:
            return False
        self._remove(notification_id)
        self._notify()
        return True

    def teardown(self) -> None:
        """Cancel all pending expiries and stop following the store."""

        self._scheduler.cancel_all()
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._items.clear()
        self._notify()

    def _admit(self, notification: Notification) -> ToastItem:
        self._shown.add(notification.id)
        deadline = self._scheduler.schedule(notification.id, self._lifetime, self._expire)
        item = ToastItem(notification=notification, deadline=deadline)
        self._items[notification.id] = item
        return item

    def _expire(self, notification_id: str) -> None:
        if self._items.pop(notification_id, None) is not None:
            self._notify()

    def _remove(self, notification_id: str) -> None:
        self._scheduler.cancel(notification_id)
        self._items.pop(notification_id, None)

    def _on_store_change(self, store: NotificationStore) -> None:
        self.derive()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Toast listener failed")


__all__ = ["ToastQueue"]
