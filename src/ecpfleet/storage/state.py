"""Persistent operator state shared by interactive commands and background jobs."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ecpfleet.models import AppState

from .files import atomic_write_text, file_lock

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOG_LINES = 200


class StateStore:
    """Key-value style access to ``state.json``.

    Every read-modify-write re-reads the file while holding both a thread lock
    and a lock file next to ``state.json``, so the job runner and a concurrent
    CLI invocation never overwrite each other's suppression flags.
    """

    def __init__(self, path: Path, max_log_lines: int = DEFAULT_MAX_LOG_LINES) -> None:
        self._path = path
        self._max_log_lines = max_log_lines
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> AppState:
        if not self._path.exists():
            return AppState()

        try:
            data = json.loads(self._path.read_text() or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid state file: {self._path}\n{exc}") from exc

        try:
            return AppState.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid state file: {self._path}\n{exc}") from exc

    def _write(self, state: AppState) -> None:
        payload = state.model_dump(mode="json")
        payload["suppressed"] = sorted(state.suppressed)
        atomic_write_text(self._path, json.dumps(payload, indent=2))

    def _mutate(self, change: Callable[[AppState], None]) -> AppState:
        with self._lock, file_lock(self._path):
            state = self._read()
            change(state)
            self._write(state)
            return state

    def load(self) -> AppState:
        with self._lock:
            return self._read()

    def update(self, **changes: Any) -> AppState:
        with self._lock, file_lock(self._path):
            current = self._read().model_dump()
            current.update(changes)
            try:
                state = AppState.model_validate(current)
            except ValidationError as exc:
                raise ValueError(str(exc)) from exc
            self._write(state)
            return state

    # Suppression flags

    def is_suppressed(self, address: str) -> bool:
        return address in self.load().suppressed

    def suppressed(self) -> set[str]:
        return set(self.load().suppressed)

    def suppress(self, address: str) -> None:
        self._mutate(lambda state: state.suppressed.add(address))
        logger.debug("Suppressed relaunch for %s", address)

    def clear_suppression(self, address: str) -> None:
        self._mutate(lambda state: state.suppressed.discard(address))
        logger.debug("Cleared suppression for %s", address)

    # Rolling log

    def append_log(self, message: str, when: datetime | None = None) -> None:
        stamp = (when or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{stamp} {message}"

        def _append(state: AppState) -> None:
            state.log.append(line)
            del state.log[: max(len(state.log) - self._max_log_lines, 0)]

        self._mutate(_append)

    def recent_log(self, lines: int | None = None) -> list[str]:
        log = self.load().log
        if lines is None:
            return list(log)
        return log[-lines:] if lines > 0 else []
