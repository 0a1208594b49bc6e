from __future__ import annotations

import logging

from ecpfleet.storage import StateStore

logger = logging.getLogger(__name__)


class Notifier:
    """User-visible notices: a log record plus a line in the rolling log."""

    def __init__(self, state: StateStore | None = None) -> None:
        self._state = state

    def notify(self, title: str, message: str, level: int = logging.INFO) -> None:
        logger.log(level, "%s: %s", title, message)
        if self._state is not None:
            self._state.append_log(f"{title}: {message}")
