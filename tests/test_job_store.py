"""
Tests for the in-memory job store and the job state machine.
"""

from datetime import timedelta

import pytest

from reelpress.core.errors import InvalidTransition
from reelpress.core.job_store import JobStore
from reelpress.models import CompressionJob, JobStatus
from reelpress.models.job import utcnow


def make_job(job_id: str = "job1", **overrides) -> CompressionJob:
    fields = dict(
        id=job_id,
        resolution="1080p",
        input_file="holiday.mov",
        input_path=f"/tmp/uploads/{job_id}.mov",
        original_size=1000,
        output_path=f"/tmp/outputs/compressed-{job_id}.mp4",
    )
    fields.update(overrides)
    return CompressionJob(**fields)


class TestJobRecords:
    """Tests for adding, reading and removing job records."""

    def test_new_job_starts_uploaded(self):
        job = make_job()
        assert job.status == JobStatus.UPLOADED
        assert job.progress == 0
        assert job.compressed_size is None
        assert job.started_at is None

    def test_add_and_get(self):
        store = JobStore()
        store.add(make_job())
        assert "job1" in store
        assert len(store) == 1
        assert store.get("job1").input_file == "holiday.mov"

    def test_get_missing_returns_none(self):
        assert JobStore().get("nope") is None

    def test_duplicate_id_rejected(self):
        store = JobStore()
        store.add(make_job())
        with pytest.raises(ValueError):
            store.add(make_job())

    def test_returned_records_are_detached(self):
        """Mutating a record handed out by the store does not change stored state."""
        store = JobStore()
        store.add(make_job())
        copy = store.get("job1")
        copy.progress = 99
        copy.status = JobStatus.FAILED
        assert store.get("job1").progress == 0
        assert store.get("job1").status == JobStatus.UPLOADED

    def test_remove(self):
        store = JobStore()
        store.add(make_job())
        assert store.remove("job1") is not None
        assert store.remove("job1") is None
        assert "job1" not in store


class TestTransitions:
    """Tests for the allowed status changes."""

    def test_happy_path(self):
        store = JobStore()
        store.add(make_job())
        started = store.transition("job1", JobStatus.PROCESSING, started_at=utcnow())
        assert started.status == JobStatus.PROCESSING
        assert started.started_at is not None

        done = store.transition("job1", JobStatus.COMPLETED, progress=100, compressed_size=400)
        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100
        assert done.compressed_size == 400

    def test_processing_to_failed(self):
        store = JobStore()
        store.add(make_job())
        store.transition("job1", JobStatus.PROCESSING)
        failed = store.transition("job1", JobStatus.FAILED, error="boom")
        assert failed.status == JobStatus.FAILED
        assert failed.error == "boom"

    @pytest.mark.parametrize(
        "path",
        [
            [JobStatus.COMPLETED],
            [JobStatus.FAILED],
            [JobStatus.PROCESSING, JobStatus.PROCESSING],
            [JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.PROCESSING],
            [JobStatus.PROCESSING, JobStatus.FAILED, JobStatus.PROCESSING],
        ],
    )
    def test_disallowed_transitions_raise(self, path):
        store = JobStore()
        store.add(make_job())
        for status in path[:-1]:
            store.transition("job1", status)
        with pytest.raises(InvalidTransition):
            store.transition("job1", path[-1])

    def test_transition_of_missing_job_returns_none(self):
        assert JobStore().transition("gone", JobStatus.PROCESSING) is None

    def test_unknown_field_rejected(self):
        store = JobStore()
        store.add(make_job())
        with pytest.raises(AttributeError):
            store.transition("job1", JobStatus.PROCESSING, colour="red")

    def test_terminal_statuses(self):
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.PROCESSING.is_terminal
        assert not JobStatus.UPLOADED.is_terminal


class TestProgress:
    """Tests for progress recording."""

    def _processing_store(self) -> JobStore:
        store = JobStore()
        store.add(make_job())
        store.transition("job1", JobStatus.PROCESSING)
        return store

    def test_progress_clamped(self):
        store = self._processing_store()
        assert store.record_progress("job1", -5) == 0
        assert store.record_progress("job1", 250) == 100

    def test_progress_never_decreases(self):
        store = self._processing_store()
        store.record_progress("job1", 40)
        assert store.record_progress("job1", 30) == 40
        assert store.get("job1").progress == 40

    def test_progress_ignored_unless_processing(self):
        store = JobStore()
        store.add(make_job())
        assert store.record_progress("job1", 50) is None
        assert store.get("job1").progress == 0
        assert store.record_progress("missing", 50) is None


class TestCounts:
    """Tests for status counts and the derived active count."""

    def test_count_by_status_includes_every_status(self):
        store = JobStore()
        store.add(make_job("a"))
        store.add(make_job("b"))
        store.transition("b", JobStatus.PROCESSING)
        assert store.count_by_status() == {
            "uploaded": 1,
            "processing": 1,
            "completed": 0,
            "failed": 0,
        }
        assert store.active_count() == 1

    def test_active_count_drops_when_job_leaves_processing(self):
        store = JobStore()
        store.add(make_job())
        store.transition("job1", JobStatus.PROCESSING)
        store.transition("job1", JobStatus.FAILED)
        assert store.active_count() == 0


class TestJobModel:
    """Tests for derived job properties."""

    def test_last_activity_uses_latest_timestamp(self):
        uploaded = utcnow() - timedelta(hours=30)
        completed = utcnow() - timedelta(hours=1)
        job = make_job(uploaded_at=uploaded, started_at=uploaded, completed_at=completed)
        assert job.last_activity == completed

    def test_download_name(self):
        assert make_job(input_file="My Trip.mov").download_name == "compressed-My Trip.mp4"
        assert make_job(input_file="").download_name == "compressed-video.mp4"
