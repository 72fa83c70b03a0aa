"""Deadline tracking for auto-expiring items."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    deadline: float
    handle: asyncio.TimerHandle


class ExpiryScheduler:
    """Track ``(key, deadline)`` pairs and fire a callback when one elapses.

    Timers run on the event loop; no threads are involved. Rescheduling an
    existing key replaces its timer.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._entries: dict[str, _Entry] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule(
        self, key: str, delay: float, callback: Callable[[str], None]
    ) -> float:
        """Call ``callback(key)`` after ``delay`` seconds and return the deadline."""

        self.cancel(key)
        deadline = self.now() + delay
        handle = self.loop.call_at(deadline, self._fire, key, callback)
        self._entries[key] = _Entry(deadline=deadline, handle=handle)
        return deadline

    def cancel(self, key: str) -> bool:
        """Cancel the timer for ``key``; return whether one was pending."""

        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        entry.handle.cancel()
        return True

    def cancel_all(self) -> None:
        for key in list(self._entries):
            self.cancel(key)

    def deadline(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return entry.deadline if entry else None

    def pending(self) -> list[tuple[str, float]]:
        """Return pending ``(key, deadline)`` pairs, soonest first."""

        return sorted(
            ((key, entry.deadline) for key, entry in self._entries.items()),
            key=lambda item: item[1],
        )

    def _fire(self, key: str, callback: Callable[[str], None]) -> None:
        self._entries.pop(key, None)
        try:
            callback(key)
        except Exception:
            logger.exception("Expiry callback for %s failed", key)


__all__ = ["ExpiryScheduler"]
