# Retention sweeper - periodic eviction of stale jobs and their files

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from reelpress.core.job_store import JobStore
from reelpress.models import JobStatus
from reelpress.models.job import utcnow
from reelpress.services.file_service import remove_artifact

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Background task that removes jobs whose last activity is older than the
    retention threshold, whatever their status, except jobs still processing.
    """

    def __init__(self, store: JobStore, retention: timedelta, interval: timedelta):
        self.store = store
        self.retention = retention
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="retention-sweeper")
        logger.info(
            f"Retention sweeper started (retention {self.retention}, interval {self.interval})"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Retention sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Auto-cleanup error: {e}", exc_info=True)

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Evict every stale job: delete its files, then its record.

        Returns:
            int: Number of jobs removed
        """
        now = now or utcnow()
        removed = 0

        with self.store.lock:
            for job in self.store.list():
                if job.status == JobStatus.PROCESSING:
                    continue
                if now - job.last_activity <= self.retention:
                    continue
                remove_artifact(job.input_path)
                remove_artifact(job.output_path)
                self.store.remove(job.id)
                removed += 1
                logger.debug(f"[{job.id}] Swept ({job.status.value}, last activity {job.last_activity.isoformat()})")

        if removed:
            logger.info(f"Auto-cleanup: Removed {removed} old job(s)")
        return removed
