# FastAPI dependencies - hand the app's settings and job service to route handlers

from fastapi import Request

from reelpress.core.config import Settings
from reelpress.services.job_service import JobService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_service(request: Request) -> JobService:
    """
    Dependency function to get the job service.
    Use in FastAPI route dependencies: `service: JobService = Depends(get_job_service)`
    """
    return request.app.state.job_service
