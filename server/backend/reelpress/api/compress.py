# Compression endpoint - admits an uploaded job and starts FFmpeg in the background

from fastapi import APIRouter, Depends
import logging

from reelpress.core.dependencies import get_job_service
from reelpress.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/compress/{job_id}")
async def start_compression(job_id: str, service: JobService = Depends(get_job_service)):
    """
    Start compressing an uploaded video

    Returns immediately; poll /api/status/{job_id} for progress.
    Responds 429 when the concurrent compression limit is reached.
    """
    job = await service.start_compression(job_id)
    return {
        "job_id": job.id,
        "message": "Compression started",
        "status": job.status.value,
    }
