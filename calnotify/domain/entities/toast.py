"""Transient presentation record for an auto-expiring alert."""

from __future__ import annotations

from dataclasses import dataclass

from .notification import Notification


@dataclass(frozen=True)
class ToastItem:
    """A notification admitted to the toast queue.

    ``deadline`` is expressed on the event loop clock (``loop.time()``).
    """

    notification: Notification
    deadline: float

    @property
    def id(self) -> str:
        return self.notification.id


__all__ = ["ToastItem"]
