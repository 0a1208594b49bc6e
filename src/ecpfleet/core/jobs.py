from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Protocol

from ecpfleet.config import SchedulerConfig
from ecpfleet.models import Job
from ecpfleet.storage import JobStore

from .automation import retry_delay

logger = logging.getLogger(__name__)


class JobHandler(Protocol):
    async def execute(self, job: Job) -> bool: ...

    def reschedule(self, job: Job) -> Job | None: ...

    def on_exhausted(self, job: Job) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRunner:
    """Executes due jobs from a ``JobStore``.

    A failed execution is retried with exponential backoff up to
    ``max_attempts``. Once a job succeeds or runs out of attempts the handler
    is asked for the follow-up job, which takes the job's place only if the
    job was not cancelled or replaced in the meantime.
    """

    def __init__(
        self,
        store: JobStore,
        handler: JobHandler,
        config: SchedulerConfig | None = None,
    ) -> None:
        self._store = store
        self._handler = handler
        self._config = config or SchedulerConfig()

    async def run_pending(self, now: datetime | None = None) -> int:
        due = self._store.due(now or utcnow())
        if not due:
            return 0
        logger.debug("Running %d due job(s)", len(due))
        await asyncio.gather(*(self._run(job) for job in due))
        return len(due)

    async def _run(self, job: Job) -> None:
        try:
            ok = await self._handler.execute(job)
        except Exception:
            logger.exception("Job %s raised", job.key)
            ok = False

        if not ok and job.attempt + 1 < self._config.max_attempts:
            delay = retry_delay(
                job.attempt, self._config.backoff_base, self._config.backoff_cap
            )
            retry = job.model_copy(
                update={"attempt": job.attempt + 1, "run_at": utcnow() + delay}
            )
            if self._store.replace_if_current(job, retry):
                logger.info(
                    "Job %s failed (attempt %d/%d), retrying in %.0fs",
                    job.key,
                    job.attempt + 1,
                    self._config.max_attempts,
                    delay.total_seconds(),
                )
            return

        if not ok:
            logger.error(
                "Job %s failed after %d attempt(s)", job.key, self._config.max_attempts
            )
            self._handler.on_exhausted(job)

        follow_up = self._handler.reschedule(job)
        if follow_up is None:
            self._store.remove_if_current(job)
        elif not self._store.replace_if_current(job, follow_up):
            logger.info("Job %s was cancelled or replaced while running", job.key)

    async def run_forever(self, poll_interval: float | None = None) -> None:
        interval = poll_interval or self._config.poll_interval
        logger.info("Job runner started (poll every %.1fs)", interval)
        while True:
            await self.run_pending()
            await asyncio.sleep(interval)
