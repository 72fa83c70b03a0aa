"""Per-user composition of store, settings, permission and toasts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from calnotify.application.ports import HostNotifier, NotificationBackend
from calnotify.application.use_cases.permission import PermissionGate
from calnotify.application.use_cases.settings import SettingsReconciler
from calnotify.domain.entities import Notification, NotificationSettings
from calnotify.domain.errors import SettingsUnavailableError

from .bell import BellSnapshot, bell_snapshot
from .store import NotificationStore
from .toasts import ToastQueue

logger = logging.getLogger(__name__)


class NotificationSession:
    """Everything the UI reads and calls for the signed-in user."""

    def __init__(
        self,
        backend: NotificationBackend,
        *,
        host: HostNotifier | None = None,
        toast_lifetime: float | None = None,
    ) -> None:
        self.permission = PermissionGate(host)
        self.reconciler = SettingsReconciler(backend, permission_gate=self.permission)
        self.store = NotificationStore(
            backend,
            host=host,
            permission_gate=self.permission,
            settings_provider=lambda: self.reconciler.current,
        )
        self._toast_lifetime = toast_lifetime
        self._shown_toasts: set[str] = set()
        self.toasts: ToastQueue | None = None

    @property
    def notifications(self) -> list[Notification]:
        return self.store.notifications

    @property
    def unread_count(self) -> int:
        return self.store.unread_count

    @property
    def loading(self) -> bool:
        return self.store.loading

    @property
    def settings(self) -> NotificationSettings:
        return self.reconciler.current

    async def start(self, user_id: str) -> None:
        """Load settings and notifications for ``user_id`` and go live."""

        self._close_toasts()
        if self.store.user_id is not None and self.store.user_id != user_id:
            # Drop the previous user's cache before anything derives from it.
            await self.store.teardown()
        try:
            await self.reconciler.load(user_id)
        except SettingsUnavailableError:
            logger.error("Using default notification settings for %s", user_id)
        self.toasts = ToastQueue(
            self.store, lifetime=self._toast_lifetime, shown=self._shown_toasts
        )
        await self.store.start(user_id)

    async def close(self) -> None:
        """Sign-out or shutdown: stop timers and release the live channel."""

        self._close_toasts()
        await self.store.teardown()

    async def mark_as_read(self, notification_id: str) -> None:
        await self.store.mark_as_read(notification_id)

    async def mark_all_as_read(self) -> None:
        await self.store.mark_all_as_read()

    async def delete(self, notification_id: str) -> None:
        await self.store.delete(notification_id)

    async def update_settings(self, patch: Mapping[str, Any]) -> NotificationSettings:
        user_id = self._require_user()
        return await self.reconciler.update(user_id, patch)

    async def enable_push(self) -> bool:
        return await self.reconciler.enable_push(self._require_user())

    def dismiss_toast(self, notification_id: str) -> bool:
        return self.toasts.dismiss(notification_id) if self.toasts else False

    def snapshot(self) -> BellSnapshot:
        return bell_snapshot(self.store, self.settings)

    def _require_user(self) -> str:
        if self.store.user_id is None:
            raise RuntimeError("Notification session has not been started")
        return self.store.user_id

    def _close_toasts(self) -> None:
        if self.toasts is not None:
            self.toasts.teardown()
            self.toasts = None


__all__ = ["NotificationSession"]
