"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from calnotify.domain.entities import Notification, NotificationType
from calnotify.infrastructure.models import NotificationModel
from calnotify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide user-scoped CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def get(self, notification_id: str, *, user_id: str) -> Notification | None:
        model = self._get_model(notification_id, user_id=user_id)
        return self._to_entity(model) if model is not None else None

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        if notification.id:
            model.id = notification.id
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model.user_id = notification.user_id
        model.type = NotificationType.coerce(notification.type).value
        model.title = notification.title
        model.message = notification.message
        model.event_id = notification.event_id
        model.is_read = notification.is_read
        model.metadata_ = dict(notification.metadata or {})
        model.scheduled_for = ensure_app_naive_datetime(notification.scheduled_for)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_read(self, notification_id: str, *, user_id: str, is_read: bool) -> bool:
        """Update the read flag; return ``False`` when no such record exists."""

        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .update({NotificationModel.is_read: is_read}, synchronize_session=False)
        )
        self.session.commit()
        return bool(updated)

    def mark_all_read(self, user_id: str) -> int:
        """Mark this user's unread notifications as read and return how many."""

        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update({NotificationModel.is_read: True}, synchronize_session=False)
        )
        self.session.commit()
        return int(updated)

    def delete(self, notification_id: str, *, user_id: str) -> bool:
        model = self._get_model(notification_id, user_id=user_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def _get_model(self, notification_id: str, *, user_id: str) -> NotificationModel | None:
        return (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType.coerce(model.type),
            title=model.title,
            message=model.message,
            event_id=model.event_id,
            is_read=bool(model.is_read),
            metadata=dict(model.metadata_ or {}),
            created_at=ensure_app_timezone(model.created_at),
            scheduled_for=ensure_app_timezone(model.scheduled_for),
        )


__all__ = ["NotificationRepository"]
