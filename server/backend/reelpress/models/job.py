# Job model - tracks compression requests (status, input file, output file, progress, errors)

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Optional
import uuid


class JobStatus(str, Enum):
    """Status values for a compression job."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# The only status changes a job may go through
ALLOWED_TRANSITIONS = {
    JobStatus.UPLOADED: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class CompressionJob:
    """In-memory record of one compression request"""

    # Identity and requested preset
    id: str
    resolution: str

    # Source artifact
    input_file: str  # Original client filename
    input_path: str
    original_size: int

    # Output artifact (written by FFmpeg, kept until swept or deleted)
    output_path: str

    status: JobStatus = JobStatus.UPLOADED
    progress: int = 0

    # Set on completion
    compressed_size: Optional[int] = None
    compression_ratio: Optional[str] = None  # e.g. "60.00" (percent saved)
    processing_time: Optional[float] = None  # seconds

    # Set when failed; client-safe summary only
    error: Optional[str] = None

    # Timestamps
    uploaded_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __repr__(self):
        return f"<CompressionJob(id={self.id}, resolution={self.resolution}, status={self.status.value})>"

    @property
    def last_activity(self) -> datetime:
        """Most recent known timestamp, used for ordering and retention"""
        return max(t for t in (self.uploaded_at, self.started_at, self.completed_at) if t is not None)

    @property
    def download_name(self) -> str:
        stem = PurePath(self.input_file).stem or "video"
        return f"compressed-{stem}.mp4"

    def snapshot(self) -> "CompressionJob":
        """Detached copy safe to hand out of the store"""
        return replace(self)
