"""
Pytest fixtures for ReelPress tests.
Provides isolated storage directories, settings, a fake transcode engine and job services.
"""

import asyncio
import threading
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from reelpress.core.config import Settings
from reelpress.core.job_store import JobStore
from reelpress.services.job_service import JobService
from reelpress.services.presets import Preset


class FakeEngine:
    """
    Stand-in for the FFmpeg engine.

    Yields the configured progress values, then either writes `output_size`
    bytes to the output path and yields 100, or raises `fail_with` after
    leaving a partial output behind. With `blocking=True` it waits after the
    progress values until `release` is set; `release` is a threading.Event so
    tests driving a TestClient can set it from their own thread.
    """

    def __init__(
        self,
        progress: Sequence[int] = (25, 50, 75),
        output_size: int = 40,
        fail_with: Optional[BaseException] = None,
        blocking: bool = False,
    ):
        self.progress = list(progress)
        self.output_size = output_size
        self.fail_with = fail_with
        self.release = threading.Event()
        if not blocking:
            self.release.set()
        self.calls: List[tuple] = []

    async def transcode(self, input_path: str, output_path: str, preset: Preset):
        self.calls.append((input_path, output_path, preset.key))
        for percent in self.progress:
            yield percent
            await asyncio.sleep(0)

        while not self.release.is_set():
            await asyncio.sleep(0.01)

        if self.fail_with is not None:
            Path(output_path).write_bytes(b"partial")
            raise self.fail_with

        Path(output_path).write_bytes(b"\0" * self.output_size)
        yield 100


@pytest.fixture
def storage(tmp_path: Path) -> dict:
    """Create upload and output directories for one test."""
    dirs = {"uploads": tmp_path / "uploads", "outputs": tmp_path / "outputs"}
    for path in dirs.values():
        path.mkdir()
    return dirs


@pytest.fixture
def settings(storage: dict) -> Settings:
    """Settings pointing at the test storage directories."""
    return Settings(
        upload_dir=storage["uploads"],
        output_dir=storage["outputs"],
        max_concurrent_jobs=3,
        max_upload_size_mb=5,
    )


@pytest.fixture
def store() -> JobStore:
    return JobStore()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def make_service(store: JobStore, storage: dict):
    """Factory for job services sharing the test store and output directory."""

    def _make(engine=None, limit: int = 3) -> JobService:
        return JobService(store, engine or FakeEngine(), output_dir=storage["outputs"], max_concurrent_jobs=limit)

    return _make


@pytest.fixture
def make_upload(storage: dict):
    """Factory that writes a fake uploaded video into the uploads directory."""
    counter = {"n": 0}

    def _make(size: int = 100, name: Optional[str] = None) -> Path:
        counter["n"] += 1
        path = storage["uploads"] / (name or f"video-{counter['n']}.mp4")
        path.write_bytes(b"\1" * size)
        return path

    return _make
