"""Failures raised by the notification subsystem."""

from __future__ import annotations


class NotificationBackendError(RuntimeError):
    """A call to the remote notification store failed."""


class SettingsUnavailableError(NotificationBackendError):
    """Settings could not be fetched for a reason other than "not found"."""


class PushPermissionRequiredError(ValueError):
    """Push delivery was enabled while host permission is not granted."""


__all__ = [
    "NotificationBackendError",
    "SettingsUnavailableError",
    "PushPermissionRequiredError",
]
