# Job status routes - job status, job listing, job cleanup

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
import logging

from reelpress.core.dependencies import get_job_service
from reelpress.models import CompressionJob
from reelpress.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


class JobResponse(BaseModel):
    """Public view of a job; filesystem paths are never exposed"""
    id: str
    status: str
    progress: int
    resolution: str
    input_file: str
    original_size: int
    compressed_size: Optional[int] = None
    compression_ratio: Optional[str] = None
    processing_time: Optional[float] = None
    error: Optional[str] = None
    uploaded_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: CompressionJob) -> "JobResponse":
        return cls(
            id=job.id,
            status=job.status.value,
            progress=job.progress,
            resolution=job.resolution,
            input_file=job.input_file,
            original_size=job.original_size,
            compressed_size=job.compressed_size,
            compression_ratio=job.compression_ratio,
            processing_time=job.processing_time,
            error=job.error,
            uploaded_at=job.uploaded_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )


@router.get("/status/{job_id}", response_model=JobResponse)
def get_job_status(job_id: str, service: JobService = Depends(get_job_service)):
    """
    Get the current state of a compression job.
    """
    return JobResponse.from_job(service.get_job(job_id))


@router.get("/jobs", response_model=List[JobResponse])
def list_jobs(service: JobService = Depends(get_job_service)):
    """
    List all jobs, most recently active first.
    """
    return [JobResponse.from_job(job) for job in service.list_jobs()]


@router.delete("/cleanup/{job_id}")
async def cleanup_job(job_id: str, service: JobService = Depends(get_job_service)):
    """
    Delete a job and its files. A running compression is cancelled first.
    """
    await service.delete_job(job_id)
    return {"message": "Job cleaned up successfully", "job_id": job_id}
