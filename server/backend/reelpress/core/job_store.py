# Job store - in-memory job table, the single source of truth for job state

import logging
import threading
from collections import Counter
from typing import Dict, List, Optional

from reelpress.core.errors import InvalidTransition
from reelpress.models import ALLOWED_TRANSITIONS, CompressionJob, JobStatus

logger = logging.getLogger(__name__)


class JobStore:
    """
    Mapping from job id to job record.

    Every read and write goes through `lock`, a re-entrant lock, so callers
    that need a multi-step decision (admission, sweeping) can hold it across
    several store calls. Records handed out are detached copies; state only
    changes through the methods below.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._jobs: Dict[str, CompressionJob] = {}

    def __len__(self) -> int:
        with self.lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self.lock:
            return job_id in self._jobs

    def add(self, job: CompressionJob) -> CompressionJob:
        with self.lock:
            if job.id in self._jobs:
                raise ValueError(f"Job {job.id} already exists")
            self._jobs[job.id] = job
            return job.snapshot()

    def get(self, job_id: str) -> Optional[CompressionJob]:
        with self.lock:
            job = self._jobs.get(job_id)
            return job.snapshot() if job else None

    def list(self) -> List[CompressionJob]:
        with self.lock:
            return [job.snapshot() for job in self._jobs.values()]

    def remove(self, job_id: str) -> Optional[CompressionJob]:
        with self.lock:
            return self._jobs.pop(job_id, None)

    def transition(self, job_id: str, status: JobStatus, **fields) -> Optional[CompressionJob]:
        """
        Move a job to `status` and apply `fields` in one step.

        Returns None when the record is gone (deleted or swept meanwhile).
        Raises InvalidTransition for edges outside the state machine.
        """
        with self.lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if status not in ALLOWED_TRANSITIONS[job.status]:
                raise InvalidTransition(
                    f"Job {job_id}: {job.status.value} -> {status.value} is not allowed"
                )
            for name, value in fields.items():
                if not hasattr(job, name):
                    raise AttributeError(f"CompressionJob has no field {name!r}")
                setattr(job, name, value)
            job.status = status
            logger.debug(f"[{job_id}] Status -> {status.value}")
            return job.snapshot()

    def record_progress(self, job_id: str, percent: int) -> Optional[int]:
        """
        Store a progress value for a processing job.

        Values are clamped to 0-100 and never move backwards. Returns the
        stored value, or None if the job is missing or not processing.
        """
        with self.lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                return None
            percent = max(0, min(100, int(percent)))
            job.progress = max(job.progress, percent)
            return job.progress

    def count_by_status(self) -> Dict[str, int]:
        with self.lock:
            counts = Counter(job.status.value for job in self._jobs.values())
        return {status.value: counts.get(status.value, 0) for status in JobStatus}

    def active_count(self) -> int:
        """Number of jobs currently processing, derived from the records themselves"""
        with self.lock:
            return sum(1 for job in self._jobs.values() if job.status == JobStatus.PROCESSING)
