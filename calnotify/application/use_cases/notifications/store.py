"""Client-side cache of the current user's notifications."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from enum import Enum

from calnotify.application.ports import (
    INSERT_EVENT,
    NOTIFICATIONS_TABLE,
    ChannelEvent,
    ChannelSubscription,
    HostNotifier,
    NotificationBackend,
)
from calnotify.application.use_cases.permission import PermissionGate
from calnotify.config import get_settings
from calnotify.domain.entities import (
    DEFAULT_NOTIFICATION_SETTINGS,
    Notification,
    NotificationSettings,
    NotificationType,
    PermissionState,
)
from calnotify.domain.errors import NotificationBackendError

logger = logging.getLogger(__name__)

StoreListener = Callable[["NotificationStore"], None]


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


def should_alert(settings: NotificationSettings, notification: Notification) -> bool:
    """Return whether ``notification`` warrants a host-level alert."""

    if not settings.push_notifications:
        return False
    if notification.type is NotificationType.NEW_EVENT:
        if not settings.new_event_notifications:
            return False
    elif notification.type in (
        NotificationType.EVENT_UPDATED,
        NotificationType.EVENT_DELETED,
    ):
        if not settings.event_update_notifications:
            return False
    return settings.admits_project(notification.project)


class NotificationStore:
    """Authoritative in-memory view of notifications for one session user.

    Lifecycle is ``uninitialized -> loading -> ready``. Every mutation is
    applied locally before the remote call is awaited; ``unread_count`` always
    equals the number of cached records with ``is_read`` false.
    """

    def __init__(
        self,
        backend: NotificationBackend,
        *,
        host: HostNotifier | None = None,
        permission_gate: PermissionGate | None = None,
        settings_provider: Callable[[], NotificationSettings] | None = None,
        fetch_limit: int | None = None,
        failure_policy: str | None = None,
        resubscribe_attempts: int | None = None,
        resubscribe_delay: float | None = None,
        alert_icon: str | None = None,
    ) -> None:
        config = get_settings()
        self._backend = backend
        self._host = host
        self._gate = permission_gate or (PermissionGate(host) if host else None)
        self._settings_provider = settings_provider or (
            lambda: DEFAULT_NOTIFICATION_SETTINGS
        )
        self._fetch_limit = fetch_limit or config.notification_fetch_limit
        self._failure_policy = failure_policy or config.mutation_failure_policy
        self._resubscribe_attempts = (
            config.realtime_resubscribe_attempts
            if resubscribe_attempts is None
            else resubscribe_attempts
        )
        self._resubscribe_delay = (
            config.realtime_resubscribe_delay_seconds
            if resubscribe_delay is None
            else resubscribe_delay
        )
        self._alert_icon = alert_icon or config.notification_icon

        self._state = StoreState.UNINITIALIZED
        self._user_id: str | None = None
        self._notifications: list[Notification] = []
        self._unread_count = 0
        self._buffered: list[Notification] = []
        self._generation = 0
        self._subscription: ChannelSubscription | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._listeners: list[StoreListener] = []
        self.stale = False
        self.last_error: Exception | None = None

    # -- read contract ---------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def loading(self) -> bool:
        return self._state is StoreState.LOADING

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    def get(self, notification_id: str) -> Notification | None:
        for notification in self._notifications:
            if notification.id == notification_id:
                return notification
        return None

    def add_listener(self, listener: StoreListener) -> Callable[[], None]:
        """Call ``listener(store)`` after every observable change."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # -- lifecycle -------------------------------------------------------

    async def start(self, user_id: str) -> None:
        """Load the user's notifications and open the live channel."""

        await self.initialize(user_id)
        self.subscribe(user_id)

    async def initialize(self, user_id: str) -> None:
        """Bulk load the newest notifications for ``user_id``.

        Any open subscription is closed first; callers resubscribe afterwards.
        """

        await self._close_subscription()
        if user_id != self._user_id:
            self._notifications = []
            self._recount()
        self._user_id = user_id
        await self._load(user_id)

    async def refresh(self) -> None:
        """Reload the current user's notifications keeping the live channel."""

        if self._user_id is None:
            return
        await self._load(self._user_id)

    def subscribe(self, user_id: str) -> None:
        """Open the live channel for ``user_id`` and consume it in the background."""

        if self._user_id is not None and user_id != self._user_id:
            raise ValueError("Cannot subscribe to a different user's notifications")
        if self._subscription is not None:
            self._cancel_subscription()
        subscription = self._backend.subscribe(user_id)
        self._subscription = subscription
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(subscription, user_id)
        )
        logger.debug("Subscribed to live notifications for %s", user_id)

    async def teardown(self) -> None:
        """Release the live channel and forget the cached notifications."""

        await self._close_subscription()
        self._generation += 1
        self._state = StoreState.UNINITIALIZED
        self._user_id = None
        self._notifications = []
        self._buffered = []
        self.stale = False
        self.last_error = None
        self._recount()
        self._notify()

    # -- mutations -------------------------------------------------------

    async def mark_as_read(self, notification_id: str) -> None:
        user_id = self._require_user("mark_as_read")
        if user_id is None:
            return
        index = self._index_of(notification_id)
        if index is not None:
            if self._notifications[index].is_read:
                return
            self._notifications[index] = replace(
                self._notifications[index], is_read=True
            )
            self._recount()
            self._notify()

        try:
            await self._backend.update_notification(
                notification_id, user_id=user_id, is_read=True
            )
        except NotificationBackendError as exc:
            self._mutation_failed(
                "mark_as_read",
                exc,
                lambda: self._restore_unread([notification_id]),
            )

    async def mark_all_as_read(self) -> None:
        user_id = self._require_user("mark_all_as_read")
        if user_id is None:
            return
        flipped = [n.id for n in self._notifications if not n.is_read]
        self._notifications = [
            n if n.is_read else replace(n, is_read=True) for n in self._notifications
        ]
        self._recount()
        self._notify()

        try:
            await self._backend.mark_all_read(user_id)
        except NotificationBackendError as exc:
            self._mutation_failed(
                "mark_all_as_read", exc, lambda: self._restore_unread(flipped)
            )

    async def delete(self, notification_id: str) -> None:
        user_id = self._require_user("delete")
        if user_id is None:
            return
        index = self._index_of(notification_id)
        removed: Notification | None = None
        if index is not None:
            removed = self._notifications.pop(index)
            self._recount()
            self._notify()

        try:
            await self._backend.delete_notification(notification_id, user_id=user_id)
        except NotificationBackendError as exc:

            def _reinsert() -> None:
                if removed is None or self._index_of(removed.id) is not None:
                    return
                position = min(index or 0, len(self._notifications))
                self._notifications.insert(position, removed)

            self._mutation_failed("delete", exc, _reinsert)

    # -- internals -------------------------------------------------------

    async def _load(self, user_id: str) -> None:
        self._generation += 1
        generation = self._generation
        self._state = StoreState.LOADING
        self._notify()

        try:
            records = list(
                await self._backend.list_notifications(user_id, limit=self._fetch_limit)
            )
            self.last_error = None
        except NotificationBackendError as exc:
            logger.error("Error fetching notifications for %s: %s", user_id, exc)
            self.last_error = exc
            records = []

        if generation != self._generation:
            return

        self._notifications = records[: self._fetch_limit]
        buffered, self._buffered = self._buffered, []
        for record in buffered:
            self._prepend(record)
        self.stale = False
        self._state = StoreState.READY
        self._recount()
        self._notify()

    async def _consume(self, subscription: ChannelSubscription, user_id: str) -> None:
        attempts = 0
        while True:
            try:
                async for event in subscription:
                    attempts = 0
                    self._handle_event(event, user_id)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if self._subscription is subscription:
                    logger.warning(
                        "Live notification channel failed for %s: %s", user_id, exc
                    )
            else:
                if self._subscription is subscription:
                    logger.warning("Live notification channel closed for %s", user_id)
            if self._subscription is not subscription:
                return

            # The cache keeps its last known state while we reconnect.
            replacement: ChannelSubscription | None = None
            while replacement is None:
                if attempts >= self._resubscribe_attempts:
                    logger.error(
                        "Giving up on live notifications for %s after %d attempts",
                        user_id,
                        attempts,
                    )
                    self._subscription = None
                    self._consumer = None
                    return
                attempts += 1
                await asyncio.sleep(self._resubscribe_delay)
                if self._subscription is not subscription:
                    return
                try:
                    replacement = self._backend.subscribe(user_id)
                except NotificationBackendError as exc:
                    logger.warning("Resubscribing for %s failed: %s", user_id, exc)
            self._subscription = subscription = replacement

    def _handle_event(self, event: ChannelEvent, user_id: str) -> None:
        if event.table != NOTIFICATIONS_TABLE or event.event_type != INSERT_EVENT:
            logger.debug("Ignoring %s event on %s", event.event_type, event.table)
            return
        record = event.record
        if record.user_id != user_id or user_id != self._user_id:
            logger.warning("Dropping notification %s for another user", record.id)
            return
        if self._state is StoreState.LOADING:
            self._buffered.append(record)
            return
        if self._state is not StoreState.READY:
            return
        if not self._prepend(record):
            return
        self._recount()
        self._notify()
        self._raise_host_alert(record)

    def _prepend(self, record: Notification) -> bool:
        if self._index_of(record.id) is not None:
            return False
        self._notifications.insert(0, record)
        return True

    def _raise_host_alert(self, record: Notification) -> None:
        if self._host is None or self._gate is None:
            return
        if self._gate.current_state() is not PermissionState.GRANTED:
            return
        if not should_alert(self._settings_provider(), record):
            return
        try:
            self._host.show(
                record.title, record.message, icon=self._alert_icon, tag=record.id
            )
        except Exception:
            logger.exception("Host alert for notification %s failed", record.id)

    def _mutation_failed(
        self, operation: str, exc: Exception, rollback: Callable[[], None]
    ) -> None:
        logger.error("Error during %s: %s", operation, exc)
        self.last_error = exc
        if self._failure_policy == "rollback":
            rollback()
            self._recount()
        else:
            self.stale = True
        self._notify()

    def _restore_unread(self, notification_ids: Sequence[str]) -> None:
        targets = set(notification_ids)
        self._notifications = [
            replace(n, is_read=False) if n.id in targets and n.is_read else n
            for n in self._notifications
        ]

    def _require_user(self, operation: str) -> str | None:
        if self._user_id is None:
            logger.warning("Ignoring %s before the store was initialized", operation)
        return self._user_id

    def _index_of(self, notification_id: str) -> int | None:
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                return index
        return None

    def _recount(self) -> None:
        self._unread_count = sum(1 for n in self._notifications if not n.is_read)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Notification store listener failed")

    def _cancel_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        consumer, self._consumer = self._consumer, None
        if subscription is not None:
            subscription.cancel()
        if consumer is not None and consumer is not asyncio.current_task():
            consumer.cancel()

    async def _close_subscription(self) -> None:
        consumer = self._consumer
        self._cancel_subscription()
        if consumer is not None and consumer is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await consumer


__all__ = ["NotificationStore", "StoreState", "should_alert"]
