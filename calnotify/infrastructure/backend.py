"""Adapter exposing the repositories and the realtime hub as a backend port."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from calnotify.application.ports import NOTIFICATIONS_TABLE
from calnotify.domain.entities import Notification, NotificationSettings
from calnotify.domain.errors import NotificationBackendError
from calnotify.infrastructure.database import SessionLocal
from calnotify.infrastructure.notifications import RealtimeHub, realtime_hub
from calnotify.infrastructure.notifications.hub import HubSubscription
from calnotify.infrastructure.repositories import (
    NotificationRepository,
    NotificationSettingsRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlNotificationBackend:
    """Run repository calls in worker threads with one session per call."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | Callable[[], Session] = SessionLocal,
        hub: RealtimeHub = realtime_hub,
    ) -> None:
        self._session_factory = session_factory
        self._hub = hub

    async def list_notifications(
        self, user_id: str, *, limit: int = 50
    ) -> Sequence[Notification]:
        return await self._run(
            "list notifications",
            lambda session: NotificationRepository(session).list_for_user(
                user_id, limit=limit
            ),
        )

    async def update_notification(
        self, notification_id: str, *, user_id: str, is_read: bool
    ) -> None:
        found = await self._run(
            "update notification",
            lambda session: NotificationRepository(session).set_read(
                notification_id, user_id=user_id, is_read=is_read
            ),
        )
        if not found:
            raise NotificationBackendError(f"Notification {notification_id} not found")

    async def mark_all_read(self, user_id: str) -> None:
        await self._run(
            "mark all notifications read",
            lambda session: NotificationRepository(session).mark_all_read(user_id),
        )

    async def delete_notification(self, notification_id: str, *, user_id: str) -> None:
        await self._run(
            "delete notification",
            lambda session: NotificationRepository(session).delete(
                notification_id, user_id=user_id
            ),
        )

    async def get_settings(self, user_id: str) -> NotificationSettings | None:
        return await self._run(
            "fetch settings",
            lambda session: NotificationSettingsRepository(session).get(user_id),
        )

    async def upsert_settings(
        self, user_id: str, settings: NotificationSettings
    ) -> NotificationSettings:
        return await self._run(
            "store settings",
            lambda session: NotificationSettingsRepository(session).upsert(
                user_id, settings
            ),
        )

    def subscribe(self, user_id: str) -> HubSubscription:
        return self._hub.subscribe(NOTIFICATIONS_TABLE, user_id)

    async def _run(self, description: str, operation: Callable[[Session], T]) -> T:
        def _call() -> T:
            session = self._session_factory()
            try:
                return operation(session)
            except SQLAlchemyError:
                session.rollback()
                raise
            finally:
                session.close()

        try:
            return await anyio.to_thread.run_sync(_call)
        except SQLAlchemyError as exc:
            logger.error("Failed to %s: %s", description, exc)
            raise NotificationBackendError(f"Failed to {description}") from exc
        except ValueError as exc:
            # Stored rows that no longer decode into valid entities.
            logger.error("Invalid stored data during %s: %s", description, exc)
            raise NotificationBackendError(f"Failed to {description}") from exc


__all__ = ["SqlNotificationBackend"]
