"""Broker for the host's one-shot notification permission."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from calnotify.application.ports import HostNotifier
from calnotify.domain.entities import PermissionState

logger = logging.getLogger(__name__)


class PermissionGate:
    """Expose the host permission state and request it at most once per prompt.

    A gate without a host behaves like a platform that never grants permission.
    """

    def __init__(self, host: HostNotifier | None) -> None:
        self._host = host
        self._pending: asyncio.Task[PermissionState] | None = None
        self._granted_callbacks: list[Callable[[], None]] = []

    def current_state(self) -> PermissionState:
        """Return the host state without prompting."""

        if self._host is None:
            return PermissionState.DENIED
        return self._host.current_permission()

    @property
    def push_control_enabled(self) -> bool:
        """Whether the UI may offer the push delivery toggle."""

        return self.current_state() is PermissionState.GRANTED

    def on_granted(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` for the transition to ``granted``."""

        self._granted_callbacks.append(callback)

        def _remove() -> None:
            if callback in self._granted_callbacks:
                self._granted_callbacks.remove(callback)

        return _remove

    async def request(self) -> bool:
        """Return ``True`` when permission is (or becomes) granted.

        ``granted`` and ``denied`` resolve without prompting. Concurrent callers
        in the ``default`` state share a single prompt.
        """

        state = self.current_state()
        if state is PermissionState.GRANTED:
            return True
        if state is PermissionState.DENIED or self._host is None:
            return False

        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_task(self._prompt())
        try:
            outcome = await self._pending
        finally:
            if self._pending is not None and self._pending.done():
                self._pending = None
        return outcome is PermissionState.GRANTED

    async def _prompt(self) -> PermissionState:
        assert self._host is not None
        outcome = await self._host.request_permission()
        logger.info("Notification permission resolved to %s", outcome.value)
        if outcome is PermissionState.GRANTED:
            for callback in list(self._granted_callbacks):
                try:
                    callback()
                except Exception:
                    logger.exception("Permission grant callback failed")
        return outcome


__all__ = ["PermissionGate"]
