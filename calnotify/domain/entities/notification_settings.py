"""Per-user notification delivery settings and their reconciliation rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Final


@dataclass(frozen=True)
class NotificationSettings:
    """Complete delivery settings for a single user.

    ``project_filters`` empty means every project is admitted.
    ``id``, ``created_at`` and ``updated_at`` are assigned by the persistence
    layer and stay ``None`` on records that were never stored.
    """

    email_notifications: bool
    push_notifications: bool
    reminder_minutes: tuple[int, ...]
    project_filters: tuple[str, ...]
    new_event_notifications: bool
    event_update_notifications: bool
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """Return the preference fields as a JSON-serializable mapping."""

        return {
            "email_notifications": self.email_notifications,
            "push_notifications": self.push_notifications,
            "reminder_minutes": list(self.reminder_minutes),
            "project_filters": list(self.project_filters),
            "new_event_notifications": self.new_event_notifications,
            "event_update_notifications": self.event_update_notifications,
        }

    def admits_project(self, project: str | None) -> bool:
        if not self.project_filters or project is None:
            return True
        return project in self.project_filters


DEFAULT_NOTIFICATION_SETTINGS: Final[NotificationSettings] = NotificationSettings(
    email_notifications=True,
    push_notifications=True,
    reminder_minutes=(15, 60, 1440),
    project_filters=(),
    new_event_notifications=True,
    event_update_notifications=True,
)

PREFERENCE_FIELDS: Final[tuple[str, ...]] = tuple(
    item.name
    for item in fields(NotificationSettings)
    if item.name not in {"id", "created_at", "updated_at"}
)

_CAMEL_ALIASES: Final[dict[str, str]] = {
    "emailNotifications": "email_notifications",
    "pushNotifications": "push_notifications",
    "reminderMinutes": "reminder_minutes",
    "projectFilters": "project_filters",
    "newEventNotifications": "new_event_notifications",
    "eventUpdateNotifications": "event_update_notifications",
}

_BOOLEAN_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "email_notifications",
        "push_notifications",
        "new_event_notifications",
        "event_update_notifications",
    }
)


def normalize_reminder_minutes(values: Iterable[Any]) -> tuple[int, ...]:
    """Return ``values`` sorted ascending without duplicates.

    Raises ``ValueError`` for negative or non-integral entries.
    """

    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValueError(f"Reminder offsets must be a list, got {values!r}")
    normalized: set[int] = set()
    for value in values:
        if isinstance(value, bool):
            raise ValueError(f"Invalid reminder offset: {value!r}")
        try:
            minutes = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid reminder offset: {value!r}") from exc
        if minutes != value and not isinstance(value, str):
            raise ValueError(f"Invalid reminder offset: {value!r}")
        if minutes < 0:
            raise ValueError(f"Reminder offsets must be non-negative, got {minutes}")
        normalized.add(minutes)
    return tuple(sorted(normalized))


def normalize_project_filters(values: Iterable[Any]) -> tuple[str, ...]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValueError(f"Project filters must be a list, got {values!r}")
    return tuple(sorted({str(value) for value in values if value not in (None, "")}))


def normalize_patch(partial: Mapping[str, Any] | None) -> dict[str, Any]:
    """Translate aliases, drop unknown keys and normalize list fields."""

    if not partial:
        return {}

    patch: dict[str, Any] = {}
    for key, value in partial.items():
        name = _CAMEL_ALIASES.get(key, key)
        if name not in PREFERENCE_FIELDS or value is None:
            continue
        if name == "reminder_minutes":
            patch[name] = normalize_reminder_minutes(value)
        elif name == "project_filters":
            patch[name] = normalize_project_filters(value)
        elif name in _BOOLEAN_FIELDS:
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean, got {value!r}")
            patch[name] = value
    return patch


def reconcile(
    defaults: NotificationSettings, partial: Mapping[str, Any] | None
) -> NotificationSettings:
    """Merge ``partial`` over ``defaults`` into a fully populated record.

    Pure function: neither argument is modified and no persistence is involved.
    """

    return replace(defaults, **normalize_patch(partial))


__all__ = [
    "DEFAULT_NOTIFICATION_SETTINGS",
    "NotificationSettings",
    "PREFERENCE_FIELDS",
    "normalize_patch",
    "normalize_project_filters",
    "normalize_reminder_minutes",
    "reconcile",
]
