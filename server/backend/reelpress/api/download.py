# Download endpoint - serves the compressed video of a completed job

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
import logging

from reelpress.core.dependencies import get_job_service
from reelpress.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/download/{job_id}")
def download_video(job_id: str, service: JobService = Depends(get_job_service)):
    """
    Download the compressed video. Returns the file with Content-Disposition header.
    """
    job = service.get_download(job_id)
    logger.info(f"[{job_id}] Download started: {job.download_name}")
    return FileResponse(
        job.output_path,
        media_type="video/mp4",
        filename=job.download_name,
    )
