# FastAPI application entrypoint - builds the app, wires the job service, starts the server

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from reelpress import __version__
from reelpress.api import compress, download, health, jobs, ping, presets, upload
from reelpress.core.config import Settings, settings
from reelpress.core.errors import JobError
from reelpress.core.job_store import JobStore
from reelpress.services.job_service import JobService, TranscodeEngine
from reelpress.services.retention import RetentionSweeper
from reelpress.services.transcode_service import transcode_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_settings: Settings = app.state.settings
    app_settings.ensure_directories()
    app.state.sweeper.start()

    logger.info("=" * 60)
    logger.info("ReelPress video compression server")
    logger.info(f"Upload directory: {app_settings.upload_dir.resolve()}")
    logger.info(f"Output directory: {app_settings.output_dir.resolve()}")
    logger.info(f"Max concurrent jobs: {app_settings.max_concurrent_jobs}")
    logger.info(f"Max file size: {app_settings.max_upload_size_mb} MB")
    logger.info("=" * 60)

    try:
        yield
    finally:
        await app.state.sweeper.stop()
        await app.state.job_service.shutdown()


async def handle_job_error(request: Request, exc: JobError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(app_settings: Settings = None, engine: TranscodeEngine = None) -> FastAPI:
    """
    Build the application with its own job store, job service and sweeper.

    `engine` defaults to the FFmpeg-backed transcode service.
    """
    app_settings = app_settings or settings
    store = JobStore()

    app = FastAPI(title="ReelPress", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.job_service = JobService(
        store,
        engine or transcode_service,
        output_dir=app_settings.output_dir,
        max_concurrent_jobs=app_settings.max_concurrent_jobs,
    )
    app.state.sweeper = RetentionSweeper(
        store,
        retention=app_settings.retention,
        interval=app_settings.cleanup_interval,
    )

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def disable_caching(request: Request, call_next):
        # Status responses change every poll
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    app.add_exception_handler(JobError, handle_job_error)

    app.include_router(ping.router, prefix="/api", tags=["health"])
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(presets.router, prefix="/api", tags=["presets"])
    app.include_router(upload.router, prefix="/api", tags=["jobs"])
    app.include_router(compress.router, prefix="/api", tags=["jobs"])
    app.include_router(jobs.router, prefix="/api", tags=["jobs"])
    app.include_router(download.router, prefix="/api", tags=["jobs"])

    @app.get("/")
    def read_root():
        return {"system": "ReelPress", "status": "online", "version": __version__}

    return app


app = create_app()


def run():
    """Console entrypoint: serve the app with uvicorn"""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
