"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from calnotify.application.ports import NOTIFICATIONS_TABLE
from calnotify.application.use_cases.notifications import publish_notification
from calnotify.config import get_settings
from calnotify.domain.entities import Notification
from calnotify.infrastructure.database import SessionLocal, get_db
from calnotify.infrastructure.notifications import realtime_hub, serialize_notification
from calnotify.infrastructure.notifications.hub import HubSubscription
from calnotify.infrastructure.repositories import NotificationRepository
from calnotify.interfaces.api.dependencies import get_current_user_id
from calnotify.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationMarkReadRequest,
    NotificationRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        event_id=notification.event_id,
        is_read=notification.is_read,
        metadata=notification.metadata or {},
        created_at=notification.created_at,
        scheduled_for=notification.scheduled_for,
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> list[NotificationRead]:
    """Return the most recent notifications for the calling user."""

    notifications = NotificationRepository(db).list_for_user(
        user_id, limit=get_settings().notification_fetch_limit
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
) -> NotificationRead:
    """Record a notification on behalf of a producer and broadcast it."""

    notification = publish_notification(
        db,
        user_id=payload.user_id,
        type=payload.type,
        title=payload.title,
        message=payload.message,
        event_id=payload.event_id,
        metadata=payload.metadata,
        scheduled_for=payload.scheduled_for,
    )
    return _notification_to_schema(notification)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MarkAllReadResponse:
    updated = NotificationRepository(db).mark_all_read(user_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/read", response_model=MarkAllReadResponse)
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MarkAllReadResponse:
    """Mark a batch of the caller's notifications as read; unknown ids are skipped."""

    repository = NotificationRepository(db)
    updated = sum(
        1
        for notification_id in payload.unique_ids()
        if repository.set_read(notification_id, user_id=user_id, is_read=True)
    )
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    if not NotificationRepository(db).set_read(notification_id, user_id=user_id, is_read=True):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    if not NotificationRepository(db).delete(notification_id, user_id=user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _acknowledge(ids: list[str], user_id: str) -> None:
    session = SessionLocal()
    try:
        repository = NotificationRepository(session)
        for notification_id in ids:
            repository.set_read(notification_id, user_id=user_id, is_read=True)
    finally:
        session.close()


async def _forward_events(websocket: WebSocket, subscription: HubSubscription) -> None:
    try:
        async for event in subscription:
            await websocket.send_json(
                {"type": "notification", "data": serialize_notification(event.record)}
            )
    except Exception as exc:  # pragma: no cover - socket closed while sending
        logger.debug("Stopped forwarding notifications: %s", exc)


async def _receive_messages(websocket: WebSocket, user_id: str) -> None:
    while True:
        try:
            message = await websocket.receive_json()
        except WebSocketDisconnect:
            return
        except ValueError:
            continue

        if not isinstance(message, dict):
            continue

        message_type = message.get("type")
        if message_type == "ping":
            await websocket.send_json({"type": "pong"})
            continue

        if message_type == "ack":
            ids = message.get("ids", [])
            if isinstance(ids, list) and ids:
                await anyio.to_thread.run_sync(
                    _acknowledge, [str(value) for value in ids], user_id
                )
            continue


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams inserted notifications to one user."""

    user_id = (websocket.query_params.get("user_id") or "").strip()
    if not user_id:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    subscription = realtime_hub.subscribe(NOTIFICATIONS_TABLE, user_id)
    try:
        async with anyio.create_task_group() as task_group:
            task_group.start_soon(_forward_events, websocket, subscription)
            await _receive_messages(websocket, user_id)
            task_group.cancel_scope.cancel()
    finally:
        subscription.cancel()
