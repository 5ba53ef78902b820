# Admission control - global ceiling on simultaneously processing jobs

from dataclasses import dataclass

from reelpress.core.job_store import JobStore


@dataclass(frozen=True)
class Admission:
    """Outcome of an admission check"""

    admitted: bool
    current_active: int
    limit: int


class AdmissionController:
    """
    Decides whether one more job may start processing.

    The active count is re-derived from the store on every check instead of
    being tracked in a counter, so a job leaving `processing` by any path is
    what frees its slot. Call `try_admit` while holding `store.lock` and make
    the transition to processing before releasing it.
    """

    def __init__(self, store: JobStore, limit: int = 3):
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1")
        self.store = store
        self.limit = limit

    def active_count(self) -> int:
        return self.store.active_count()

    def try_admit(self) -> Admission:
        active = self.active_count()
        return Admission(admitted=active < self.limit, current_active=active, limit=self.limit)
