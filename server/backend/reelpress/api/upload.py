# Video upload endpoint - validates the multipart upload, saves it to disk, registers a job

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from typing import Optional
import logging

from reelpress.core.config import Settings
from reelpress.core.dependencies import get_job_service, get_settings
from reelpress.core.errors import InvalidPreset, JobError, MissingFile
from reelpress.services import presets
from reelpress.services.file_service import (
    generate_upload_name,
    remove_artifact,
    save_upload,
    validate_video_upload,
)
from reelpress.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload")
def upload_video(
    video: Optional[UploadFile] = File(None),
    resolution: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
    service: JobService = Depends(get_job_service),
):
    """
    Upload a video and register it for compression

    - **video**: The video file to upload
    - **resolution**: Target preset (720p, 1080p, original)

    Returns the job ID used by the compress, status and download endpoints.
    """
    # Reject bad requests before anything touches the disk
    if video is None or not video.filename:
        raise MissingFile()
    if not presets.is_valid(resolution):
        raise InvalidPreset(resolution, presets.QUALITY_PRESETS.keys())
    content_type = validate_video_upload(video.filename, video.content_type, settings.allowed_extensions)

    input_path = settings.upload_dir / generate_upload_name(video.filename)
    logger.info(f"Receiving upload: {video.filename} ({content_type}) -> {input_path.name}")

    try:
        size = save_upload(video.file, input_path, settings.max_upload_size_bytes)
        job = service.create_job(
            input_path=input_path,
            input_file=video.filename,
            size=size,
            resolution=resolution,
        )
    except JobError:
        remove_artifact(input_path)
        raise
    except Exception as e:
        logger.error(f"Upload error: {e}", exc_info=True)
        remove_artifact(input_path)
        raise HTTPException(status_code=500, detail="Internal server error during upload")

    return {
        "job_id": job.id,
        "message": "Video uploaded successfully. Ready to compress.",
        "resolution": job.resolution,
        "original_size": job.original_size,
        "file_name": job.input_file,
    }
