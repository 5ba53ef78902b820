# Error taxonomy for job operations - closed set of kinds, structured context, HTTP mapping

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Categories every job error belongs to."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    ENGINE_FAILURE = "engine_failure"


# HTTP status returned at the API boundary for each kind
HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.CAPACITY: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ENGINE_FAILURE: 500,
}


class JobError(Exception):
    """
    Base class for errors raised by job operations.

    Carries a kind from the closed ErrorKind set, a stable machine-readable
    code, a client-safe message and optional structured context.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    code: str = "job_error"
    message: str = "Job operation failed"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.context}


# Validation

class InvalidPreset(JobError):
    kind = ErrorKind.VALIDATION
    code = "invalid_preset"

    def __init__(self, resolution: Optional[str], allowed):
        allowed = list(allowed)
        super().__init__(
            f"Invalid resolution. Choose {', '.join(allowed[:-1])}, or {allowed[-1]}",
            resolution=resolution,
            allowed=allowed,
        )


class UnsupportedMedia(JobError):
    kind = ErrorKind.VALIDATION
    code = "unsupported_media"


class UploadTooLarge(JobError):
    kind = ErrorKind.VALIDATION
    code = "upload_too_large"

    @property
    def status_code(self) -> int:
        return 413


class MissingFile(JobError):
    kind = ErrorKind.VALIDATION
    code = "missing_file"
    message = "No video file uploaded"


# Conflict

class AlreadyProcessing(JobError):
    kind = ErrorKind.CONFLICT
    code = "already_processing"
    message = "Compression already in progress"


class AlreadyCompleted(JobError):
    kind = ErrorKind.CONFLICT
    code = "already_completed"
    message = "Video already compressed"


class NotReady(JobError):
    kind = ErrorKind.CONFLICT
    code = "not_ready"
    message = "Video compression not completed yet"


# Capacity

class Busy(JobError):
    kind = ErrorKind.CAPACITY
    code = "busy"

    def __init__(self, current_active: int, limit: int):
        super().__init__(
            f"Server is busy. Maximum {limit} concurrent compressions allowed. "
            "Please try again in a moment.",
            active_jobs=current_active,
            limit=limit,
        )
        self.current_active = current_active
        self.limit = limit


# Not found

class JobNotFound(JobError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    message = "Job not found"


class InputMissing(JobError):
    kind = ErrorKind.NOT_FOUND
    code = "input_missing"
    message = "Video file not found. It may have been deleted."


class FileMissing(JobError):
    kind = ErrorKind.NOT_FOUND
    code = "file_missing"
    message = "Compressed file not found. It may have been deleted."


# Engine failure

class TranscodeError(JobError):
    """FFmpeg exited abnormally. `stderr` holds raw diagnostics for the logs only."""

    kind = ErrorKind.ENGINE_FAILURE
    code = "engine_failure"
    message = "Compression failed. The video file may be corrupted or in an unsupported format."

    def __init__(self, detail: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__()
        self.detail = detail
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        return self.detail


class InvalidTransition(RuntimeError):
    """Internal error: a status change outside the job state machine was attempted."""
