"""Durable keyed job queue backing the scheduler."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ecpfleet.models import Job

from .files import atomic_write_text, file_lock

logger = logging.getLogger(__name__)


class _JobFile(BaseModel):
    model_config = {"extra": "forbid"}

    jobs: list[Job] = Field(default_factory=list)


class JobStore:
    """Pending jobs keyed by ``Job.key``, persisted to ``jobs.json``.

    Enqueueing a job replaces any pending job with the same key. The
    ``*_if_current`` methods only touch a key whose pending job still carries
    the given id; that is how an execution learns it was cancelled or
    superseded while it ran. Mutations hold ``jobs.json.lock`` so a cancel
    from another process is never overwritten by a follow-up.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Job]:
        if not self._path.exists():
            return {}

        try:
            data = json.loads(self._path.read_text() or "{}")
            jobs = _JobFile.model_validate(data).jobs
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ValueError(f"Invalid jobs file: {self._path}\n{exc}") from exc

        return {job.key: job for job in jobs}

    def _write(self, jobs: dict[str, Job]) -> None:
        ordered = sorted(jobs.values(), key=lambda job: (job.run_at, job.key))
        payload = _JobFile(jobs=ordered).model_dump(mode="json")
        atomic_write_text(self._path, json.dumps(payload, indent=2))

    def _mutate(self, change: Callable[[dict[str, Job]], bool]) -> bool:
        with self._lock, file_lock(self._path):
            jobs = self._read()
            changed = change(jobs)
            if changed:
                self._write(jobs)
            return changed

    def enqueue(self, job: Job) -> None:
        def _put(jobs: dict[str, Job]) -> bool:
            replaced = jobs.get(job.key)
            if replaced is not None:
                logger.debug("Replacing pending job %s", job.key)
            jobs[job.key] = job
            return True

        self._mutate(_put)

    def cancel_by_tag(self, tag: str) -> int:
        cancelled: list[str] = []

        def _cancel(jobs: dict[str, Job]) -> bool:
            for key, job in list(jobs.items()):
                if tag in job.tags:
                    del jobs[key]
                    cancelled.append(key)
            return bool(cancelled)

        self._mutate(_cancel)
        return len(cancelled)

    def replace_if_current(self, current: Job, replacement: Job) -> bool:
        def _swap(jobs: dict[str, Job]) -> bool:
            pending = jobs.get(current.key)
            if pending is None or pending.id != current.id:
                return False
            del jobs[current.key]
            jobs[replacement.key] = replacement
            return True

        return self._mutate(_swap)

    def remove_if_current(self, job: Job) -> bool:
        def _remove(jobs: dict[str, Job]) -> bool:
            pending = jobs.get(job.key)
            if pending is None or pending.id != job.id:
                return False
            del jobs[job.key]
            return True

        return self._mutate(_remove)

    def get(self, key: str) -> Job | None:
        with self._lock:
            return self._read().get(key)

    def pending(self) -> list[Job]:
        with self._lock:
            jobs = self._read()
        return sorted(jobs.values(), key=lambda job: (job.run_at, job.key))

    def due(self, now: datetime) -> list[Job]:
        return [job for job in self.pending() if job.run_at <= now]
