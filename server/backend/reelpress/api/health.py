# Health endpoint - uptime, job counts, concurrency usage, process and host resources

from datetime import datetime, timezone
import logging
import platform
import time

from fastapi import APIRouter, Depends
import psutil

from reelpress.core.config import Settings
from reelpress.core.dependencies import get_job_service, get_settings
from reelpress.services.file_service import count_files
from reelpress.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(
    settings: Settings = Depends(get_settings),
    service: JobService = Depends(get_job_service),
):
    """
    Service health with job and resource statistics.
    """
    try:
        stats = service.stats()

        process = psutil.Process()
        memory = process.memory_info()
        process_info = {
            "pid": process.pid,
            "memory_rss_mb": round(memory.rss / 1024 / 1024, 1),
            "memory_vms_mb": round(memory.vms / 1024 / 1024, 1),
            "cpu_percent": process.cpu_percent(interval=None),
            "threads": process.num_threads(),
        }

        host_memory = psutil.virtual_memory()
        disk = psutil.disk_usage(str(settings.output_dir) if settings.output_dir.exists() else "/")
        system_info = {
            "platform": platform.system(),
            "python_version": platform.python_version(),
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": host_memory.percent,
            "disk_free": disk.free,
            "disk_percent": disk.percent,
        }

        # Overall status determination
        status = "healthy"
        issues = []

        if host_memory.percent > 90:
            status = "degraded"
            issues.append("High memory usage")

        if disk.percent > 95:
            status = "degraded"
            issues.append("Low disk space")

        if stats["active"] >= stats["limit"]:
            issues.append("All compression slots in use")

        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.time() - process.create_time(), 1),
            "issues": issues if issues else None,
            "jobs": {
                "total": stats["total"],
                "by_status": stats["by_status"],
                "active": stats["active"],
                "limit": stats["limit"],
                "uploads": count_files(settings.upload_dir),
                "outputs": count_files(settings.output_dir),
            },
            "process": process_info,
            "system": system_info,
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": str(e),
        }
