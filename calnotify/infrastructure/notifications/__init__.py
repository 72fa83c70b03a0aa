"""Realtime notification helpers for the infrastructure layer."""

from .hub import HubSubscription, RealtimeHub, realtime_hub
from .publisher import (
    NotificationPublisher,
    dispatch_notification,
    notification_publisher,
    serialize_notification,
)

__all__ = [
    "HubSubscription",
    "RealtimeHub",
    "realtime_hub",
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
]
