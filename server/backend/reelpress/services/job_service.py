# Job lifecycle - register uploads, admit and run compressions, expose status, clean up artifacts

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from reelpress.core.admission import AdmissionController
from reelpress.core.errors import (
    AlreadyCompleted,
    AlreadyProcessing,
    Busy,
    FileMissing,
    InputMissing,
    InvalidPreset,
    JobNotFound,
    NotReady,
    TranscodeError,
)
from reelpress.core.job_store import JobStore
from reelpress.models import CompressionJob, JobStatus
from reelpress.models.job import new_job_id, utcnow
from reelpress.services import presets
from reelpress.services.file_service import remove_artifact
from reelpress.services.presets import Preset

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Compression cancelled"
INTERNAL_ERROR_MESSAGE = "Compression failed due to an internal error. Please try again."


class TranscodeEngine(Protocol):
    def transcode(self, input_path: str, output_path: str, preset: Preset) -> AsyncIterator[int]:
        ...


def compression_ratio(original_size: int, compressed_size: int) -> str:
    """Percent of the original size saved, formatted with two decimals"""
    if original_size <= 0:
        return "0.00"
    return f"{(1 - compressed_size / original_size) * 100:.2f}"


class JobService:
    """
    Drives compression jobs through uploaded -> processing -> completed/failed.

    The service is the only writer of job status. Each admitted job runs as
    one asyncio task that consumes the engine's progress stream; whatever way
    that task ends, the job leaves `processing` (which frees its admission
    slot) and its input artifact is deleted.
    """

    def __init__(self, store: JobStore, engine: TranscodeEngine, output_dir, max_concurrent_jobs: int = 3):
        self.store = store
        self.engine = engine
        self.output_dir = Path(output_dir)
        self.admission = AdmissionController(store, max_concurrent_jobs)
        self._tasks: Dict[str, asyncio.Task] = {}

    # Creation

    def create_job(self, input_path, input_file: str, size: int, resolution: Optional[str]) -> CompressionJob:
        """Register an upload that is already on disk. Raises InvalidPreset for unknown keys."""
        if not presets.is_valid(resolution):
            raise InvalidPreset(resolution, presets.QUALITY_PRESETS.keys())

        job_id = new_job_id()
        job = self.store.add(CompressionJob(
            id=job_id,
            resolution=resolution,
            input_file=input_file,
            input_path=str(input_path),
            original_size=size,
            output_path=str(self.output_dir / f"compressed-{job_id}.mp4"),
        ))
        logger.info(f"[{job_id}] Video uploaded: {input_file} ({size / 1024 / 1024:.2f} MB) -> {resolution}")
        return job

    # Admission and processing

    def admit(self, job_id: str) -> CompressionJob:
        """
        Check a job can start and move it to processing.

        All checks and the transition happen under one hold of the store lock,
        so concurrent requests cannot both take the last slot or both start
        the same job.
        """
        with self.store.lock:
            job = self.store.get(job_id)
            if job is None:
                raise JobNotFound()
            if job.status == JobStatus.PROCESSING:
                raise AlreadyProcessing()
            if job.status == JobStatus.COMPLETED:
                raise AlreadyCompleted()

            if not os.path.exists(job.input_path):
                self.store.remove(job_id)
                remove_artifact(job.output_path)
                logger.warning(f"[{job_id}] Input file vanished, job evicted")
                raise InputMissing()

            decision = self.admission.try_admit()
            if not decision.admitted:
                logger.info(f"[{job_id}] Admission rejected: {decision.current_active}/{decision.limit} active")
                raise Busy(decision.current_active, decision.limit)

            return self.store.transition(job_id, JobStatus.PROCESSING, progress=0, started_at=utcnow())

    async def start_compression(self, job_id: str) -> CompressionJob:
        """Admit a job and run its compression in the background"""
        job = self.admit(job_id)
        self._tasks[job_id] = asyncio.create_task(self._process(job), name=f"compress-{job_id}")
        return job

    async def _process(self, job: CompressionJob) -> None:
        preset = presets.resolve(job.resolution)
        logger.info(f"[{job.id}] Compression started: {job.input_file} -> {preset.key}")
        completed = False
        try:
            async for percent in self.engine.transcode(job.input_path, job.output_path, preset):
                self.store.record_progress(job.id, percent)
            completed = self._complete(job)

        except asyncio.CancelledError:
            logger.warning(f"[{job.id}] Compression cancelled")
            self._fail(job, CANCELLED_MESSAGE)
            raise

        except TranscodeError as e:
            logger.error(f"[{job.id}] Compression error: {e}")
            if e.stderr:
                logger.error(f"[{job.id}] FFmpeg stderr:\n{e.stderr}")
            self._fail(job, e.message)

        except Exception as e:
            logger.error(f"[{job.id}] Unexpected error during compression: {e}", exc_info=True)
            self._fail(job, INTERNAL_ERROR_MESSAGE)

        finally:
            remove_artifact(job.input_path)
            if not completed:
                remove_artifact(job.output_path)
            self._tasks.pop(job.id, None)

    def _complete(self, job: CompressionJob) -> bool:
        compressed_size = os.path.getsize(job.output_path)
        remove_artifact(job.input_path)

        completed_at = utcnow()
        processing_time = round((completed_at - job.started_at).total_seconds(), 1)
        ratio = compression_ratio(job.original_size, compressed_size)

        finished = self._finish(
            job.id,
            JobStatus.COMPLETED,
            progress=100,
            compressed_size=compressed_size,
            compression_ratio=ratio,
            processing_time=processing_time,
            completed_at=completed_at,
        )
        if finished is None:
            logger.info(f"[{job.id}] Job removed while finishing, discarding output")
            return False

        logger.info(
            f"[{job.id}] Compression completed: {job.original_size / 1024 / 1024:.2f} MB -> "
            f"{compressed_size / 1024 / 1024:.2f} MB ({ratio}% saved) in {processing_time}s"
        )
        return True

    def _fail(self, job: CompressionJob, message: str) -> None:
        remove_artifact(job.input_path)
        remove_artifact(job.output_path)
        self._finish(job.id, JobStatus.FAILED, error=message, completed_at=utcnow())

    def _finish(self, job_id: str, status: JobStatus, **fields) -> Optional[CompressionJob]:
        with self.store.lock:
            current = self.store.get(job_id)
            if current is None or current.status != JobStatus.PROCESSING:
                return None
            return self.store.transition(job_id, status, **fields)

    # Queries

    def get_job(self, job_id: str) -> CompressionJob:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFound()
        return job

    def list_jobs(self) -> List[CompressionJob]:
        """All jobs, most recent activity first"""
        return sorted(self.store.list(), key=lambda job: job.last_activity, reverse=True)

    def get_download(self, job_id: str) -> CompressionJob:
        """Return a completed job whose output file is present"""
        job = self.get_job(job_id)
        if job.status != JobStatus.COMPLETED:
            raise NotReady(status=job.status.value)
        if not os.path.exists(job.output_path):
            raise FileMissing()
        return job

    def stats(self) -> Dict[str, Any]:
        return {
            "total": len(self.store),
            "by_status": self.store.count_by_status(),
            "active": self.admission.active_count(),
            "limit": self.admission.limit,
        }

    # Removal

    async def delete_job(self, job_id: str) -> CompressionJob:
        """
        Remove a job and its files. A job still processing is cancelled first
        and goes through the failure path before its record is removed.
        """
        if job_id not in self.store:
            raise JobNotFound()

        task = self._tasks.get(job_id)
        if task is not None:
            await self._cancel(job_id, task)

        with self.store.lock:
            job = self.store.get(job_id)
            if job is None:
                raise JobNotFound()
            remove_artifact(job.input_path)
            remove_artifact(job.output_path)
            self.store.remove(job_id)

        logger.info(f"[{job_id}] Job cleaned up: {job.input_file}")
        return job

    async def wait(self, job_id: str) -> None:
        """Wait until a job's background compression (if any) has finished"""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """Cancel every in-flight compression and wait for their cleanup"""
        running = list(self._tasks.items())
        if running:
            logger.info(f"Cancelling {len(running)} in-flight compression(s)")
        for job_id, task in running:
            await self._cancel(job_id, task)

    async def _cancel(self, job_id: str, task: asyncio.Task) -> None:
        if not task.done():
            task.cancel()
            await asyncio.wait({task})
        self._tasks.pop(job_id, None)

        # A task cancelled before its first step never ran its own cleanup
        job = self.store.get(job_id)
        if job is not None and job.status == JobStatus.PROCESSING:
            self._fail(job, CANCELLED_MESSAGE)
