"""Load, create and update per-user notification settings."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from calnotify.application.ports import NotificationBackend
from calnotify.application.use_cases.permission import PermissionGate
from calnotify.domain.entities import (
    DEFAULT_NOTIFICATION_SETTINGS,
    NotificationSettings,
    PermissionState,
    reconcile,
)
from calnotify.domain.entities.notification_settings import normalize_patch
from calnotify.domain.errors import (
    NotificationBackendError,
    PushPermissionRequiredError,
    SettingsUnavailableError,
)

logger = logging.getLogger(__name__)


class SettingsReconciler:
    """Keep the current user's settings complete and persisted.

    ``update`` merges over the settings this instance last loaded or stored,
    not over remote state. Two racing updates are not ordered here: the
    persistence layer applies last-write-wins.
    """

    def __init__(
        self,
        backend: NotificationBackend,
        *,
        permission_gate: PermissionGate | None = None,
        defaults: NotificationSettings = DEFAULT_NOTIFICATION_SETTINGS,
    ) -> None:
        self._backend = backend
        self._gate = permission_gate
        self._defaults = defaults
        self._user_id: str | None = None
        self._current: NotificationSettings | None = None

    @property
    def current(self) -> NotificationSettings:
        """Latest known settings, or the defaults before the first load."""

        return self._current if self._current is not None else self._defaults

    async def load(self, user_id: str) -> NotificationSettings:
        """Fetch the stored record, creating it from the defaults when absent."""

        try:
            stored = await self._backend.get_settings(user_id)
        except NotificationBackendError as exc:
            logger.error("Error fetching notification settings for %s: %s", user_id, exc)
            if user_id != self._user_id:
                # Never fall back to another user's settings.
                self._user_id = None
                self._current = None
            raise SettingsUnavailableError(str(exc)) from exc

        if stored is None:
            logger.info("Creating default notification settings for %s", user_id)
            stored = await self._backend.upsert_settings(user_id, self._defaults)

        self._user_id = user_id
        self._current = stored
        return stored

    async def update(
        self, user_id: str, patch: Mapping[str, Any] | None
    ) -> NotificationSettings:
        """Merge ``patch`` over the current settings and persist the result."""

        if self._current is None or self._user_id != user_id:
            await self.load(user_id)

        normalized = normalize_patch(patch)
        if normalized.get("push_notifications") and not self._push_allowed():
            raise PushPermissionRequiredError(
                "Push notifications require the host notification permission"
            )

        merged = reconcile(self.current, normalized)
        saved = await self._backend.upsert_settings(user_id, merged)
        self._current = saved
        return saved

    async def enable_push(self, user_id: str) -> bool:
        """Request host permission and turn push delivery on when granted."""

        if self._gate is None or not await self._gate.request():
            return False
        await self.update(user_id, {"push_notifications": True})
        return True

    async def reset(self, user_id: str) -> NotificationSettings:
        """Persist the default settings for ``user_id``."""

        saved = await self._backend.upsert_settings(user_id, self._defaults)
        self._user_id = user_id
        self._current = saved
        return saved

    def _push_allowed(self) -> bool:
        if self._gate is None:
            return True
        return self._gate.current_state() is PermissionState.GRANTED


__all__ = ["SettingsReconciler"]
