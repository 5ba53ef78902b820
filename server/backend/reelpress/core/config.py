# Application settings and environment variable loading (Pydantic BaseSettings)

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")

    # Storage locations for uploaded and compressed artifacts
    upload_dir: Path = Field(default=Path("uploads"))
    output_dir: Path = Field(default=Path("outputs"))

    # Upload validation
    max_upload_size_mb: int = Field(default=500, gt=0)
    allowed_extensions: List[str] = Field(
        default=["mp4", "mov", "avi", "mkv", "webm", "flv", "wmv", "mpeg", "mpg"]
    )

    # Job lifecycle
    max_concurrent_jobs: int = Field(default=3, ge=1)
    retention_hours: float = Field(default=24, gt=0)
    cleanup_interval_minutes: float = Field(default=60, gt=0)

    # FFmpeg binaries (auto-detected when unset)
    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower().lstrip(".") for ext in value if ext.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    @property
    def cleanup_interval(self) -> timedelta:
        return timedelta(minutes=self.cleanup_interval_minutes)

    def ensure_directories(self) -> None:
        """Create upload and output directories if they do not exist yet"""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
