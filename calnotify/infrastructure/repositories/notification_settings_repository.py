"""Persistence helpers for per-user notification settings."""

from __future__ import annotations

from sqlalchemy.orm import Session

from calnotify.domain.entities import (
    DEFAULT_NOTIFICATION_SETTINGS,
    NotificationSettings,
    reconcile,
)
from calnotify.infrastructure.models import NotificationSettingsModel
from calnotify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationSettingsRepository:
    """Read and upsert the single settings row each user owns."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationSettings | None:
        model = self._get_model(user_id)
        return self._to_entity(model) if model is not None else None

    def upsert(self, user_id: str, settings: NotificationSettings) -> NotificationSettings:
        """Store the full ``settings`` record, keeping the row id stable."""

        now = ensure_app_naive_datetime(now_in_app_timezone())
        model = self._get_model(user_id)
        if model is None:
            model = NotificationSettingsModel(user_id=user_id, created_at=now)
            self.session.add(model)
        model.settings = settings.to_record()
        model.updated_at = now
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model(self, user_id: str) -> NotificationSettingsModel | None:
        return (
            self.session.query(NotificationSettingsModel)
            .filter(NotificationSettingsModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: NotificationSettingsModel) -> NotificationSettings:
        # Stored JSON may predate newer fields; fill the gaps from the defaults.
        merged = reconcile(DEFAULT_NOTIFICATION_SETTINGS, model.settings or {})
        return NotificationSettings(
            email_notifications=merged.email_notifications,
            push_notifications=merged.push_notifications,
            reminder_minutes=merged.reminder_minutes,
            project_filters=merged.project_filters,
            new_event_notifications=merged.new_event_notifications,
            event_update_notifications=merged.event_update_notifications,
            id=model.id,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationSettingsRepository"]
