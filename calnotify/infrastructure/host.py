"""Host notifier for headless runtimes that have no desktop alert facility."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from calnotify.domain.entities import PermissionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostAlert:
    title: str
    body: str
    icon: str
    tag: str


class LoggingHostNotifier:
    """Write alerts to the log, collapsing repeats of the same tag.

    ``answer`` is what the simulated user replies to the single permission
    prompt; once answered, the state never returns to ``default``.
    """

    def __init__(
        self,
        *,
        state: PermissionState = PermissionState.DEFAULT,
        answer: PermissionState = PermissionState.GRANTED,
    ) -> None:
        self._state = state
        self._answer = answer
        self.prompts = 0
        self.alerts: dict[str, HostAlert] = {}

    def current_permission(self) -> PermissionState:
        return self._state

    async def request_permission(self) -> PermissionState:
        if self._state is PermissionState.DEFAULT:
            self.prompts += 1
            self._state = self._answer
        return self._state

    def show(self, title: str, body: str, *, icon: str, tag: str) -> None:
        if tag in self.alerts:
            logger.debug("Collapsed duplicate alert %s", tag)
        self.alerts[tag] = HostAlert(title=title, body=body, icon=icon, tag=tag)
        logger.info("Notification alert [%s] %s: %s", tag, title, body)


__all__ = ["HostAlert", "LoggingHostNotifier"]
