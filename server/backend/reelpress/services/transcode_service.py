# Transcoding service - FFmpeg operations, progress parsing, process cleanup

import asyncio
import json
import logging
import os
import subprocess
from collections import deque
from typing import Any, AsyncIterator, Deque, Dict, List, Optional

from reelpress.core.config import settings
from reelpress.core.errors import TranscodeError
from reelpress.services.presets import Preset

logger = logging.getLogger(__name__)

# Lines of FFmpeg stderr kept for diagnostics when a transcode fails
STDERR_TAIL_LINES = 40


def parse_progress_line(line: str, duration: float) -> Optional[int]:
    """
    Convert one line of `-progress pipe:1` output into a percentage.

    Returns None for lines that carry no usable position or when the total
    duration is unknown. Results are clamped to 0-100.
    """
    line = line.strip()
    if not line.startswith("out_time_ms=") or duration <= 0:
        return None
    try:
        time_ms = int(line.split("=", 1)[1])
    except (ValueError, IndexError):
        return None
    current_time = time_ms / 1_000_000  # FFmpeg reports microseconds despite the name
    return max(0, min(100, round(current_time / duration * 100)))


class TranscodeService:
    """Service for video compression using FFmpeg"""

    def __init__(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None):
        self._configured_ffmpeg = ffmpeg_path
        self._configured_ffprobe = ffprobe_path
        self._ffmpeg_path: Optional[str] = None
        self._ffprobe_path: Optional[str] = None

    @property
    def ffmpeg_path(self) -> str:
        if self._ffmpeg_path is None:
            self._ffmpeg_path = self._find_binary("ffmpeg", self._configured_ffmpeg)
        return self._ffmpeg_path

    @property
    def ffprobe_path(self) -> str:
        if self._ffprobe_path is None:
            self._ffprobe_path = self._find_binary("ffprobe", self._configured_ffprobe)
        return self._ffprobe_path

    def _find_binary(self, name: str, configured: Optional[str]) -> str:
        """Find an FFmpeg suite binary, preferring the configured path"""
        candidates = [configured] if configured else []
        candidates += [f"/usr/bin/{name}", f"/usr/local/bin/{name}", name]
        for path in candidates:
            try:
                result = subprocess.run([path, "-version"], capture_output=True, timeout=5)
                if result.returncode == 0:
                    logger.info(f"{name} configured at: {path}")
                    return path
            except (FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
                continue
        raise TranscodeError(f"{name} not found. Please install FFmpeg.")

    async def get_video_info(self, input_path: str) -> Dict[str, Any]:
        """
        Get video metadata using FFprobe

        Returns:
            Dict with duration, width, height, codec, bitrate
        """
        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            input_path,
        ]

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=30)
        except asyncio.TimeoutError:
            await self._cleanup_process(process, "FFprobe")
            raise TranscodeError("FFprobe timed out")

        if process.returncode != 0:
            raise TranscodeError(
                f"FFprobe failed with code {process.returncode}",
                returncode=process.returncode,
                stderr=stderr.decode("utf-8", errors="ignore"),
            )

        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise TranscodeError(f"Failed to parse FFprobe output: {e}")

        video_stream = next(
            (s for s in data.get("streams", []) if s.get("codec_type") == "video"), None
        )
        if not video_stream:
            raise TranscodeError("No video stream found in file")

        format_info = data.get("format", {})
        return {
            "duration": float(format_info.get("duration", 0) or 0),
            "width": int(video_stream.get("width", 0)),
            "height": int(video_stream.get("height", 0)),
            "codec": video_stream.get("codec_name", "unknown"),
            "bitrate": int(format_info.get("bit_rate", 0) or 0),
        }

    def build_command(self, input_path: str, output_path: str, preset: Preset) -> List[str]:
        """Build the FFmpeg argument list for a preset"""
        cmd = [
            self.ffmpeg_path,
            "-y",  # Overwrite output
            "-i", input_path,
            # Video settings
            "-c:v", "libx264",
            "-crf", str(preset.crf),
            "-preset", preset.speed,
            "-pix_fmt", "yuv420p",
            "-profile:v", "high",
            "-level", "4.2",
        ]
        if preset.scale:
            cmd += ["-vf", f"scale={preset.scale}"]
        if preset.video_bitrate:
            cmd += ["-b:v", preset.video_bitrate]
        cmd += [
            # Audio settings
            "-c:a", "aac",
            "-b:a", preset.audio_bitrate,
            # Keep source metadata, reset rotation since the filter already applied it
            "-map_metadata", "0",
            "-metadata:s:v:0", "rotate=0",
            # Output format
            "-movflags", "+faststart",
            "-f", "mp4",
            # Progress output
            "-progress", "pipe:1",
            "-nostats",
            output_path,
        ]
        return cmd

    async def transcode(self, input_path: str, output_path: str, preset: Preset) -> AsyncIterator[int]:
        """
        Compress a video, yielding progress percentages as FFmpeg reports them.

        Progress values are clamped to 0-100 but not de-duplicated or forced
        monotonic. A final 100 is yielded on success. Raises TranscodeError
        when FFmpeg exits abnormally; a partial output file may be left behind.
        """
        duration = await self._probe_duration(input_path)
        cmd = self.build_command(input_path, output_path, preset)

        logger.info(f"Starting transcode: {input_path} -> {output_path} @ {preset.key}")
        logger.debug(f"FFmpeg command: {' '.join(cmd)}")

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        # Drain stderr concurrently so a full pipe never stalls FFmpeg
        stderr_task = asyncio.create_task(self._drain(process.stderr, stderr_tail))

        try:
            while True:
                line = await process.stdout.readline()
                if not line:
                    break
                progress = parse_progress_line(line.decode("utf-8", errors="ignore"), duration)
                if progress is not None:
                    yield progress

            returncode = await process.wait()
            await stderr_task

            if returncode != 0:
                raise TranscodeError(
                    f"FFmpeg failed with code {returncode}",
                    returncode=returncode,
                    stderr="\n".join(stderr_tail),
                )
            if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
                raise TranscodeError("FFmpeg exited cleanly but produced no output")

            logger.info(f"Transcode finished: {output_path}")
            yield 100

        finally:
            # Runs on success, failure, and when the consumer is cancelled
            await self._cleanup_process(process)
            if not stderr_task.done():
                stderr_task.cancel()
                try:
                    await stderr_task
                except asyncio.CancelledError:
                    pass

    def ensure_available(self) -> None:
        """Resolve both binaries, raising TranscodeError if either is missing"""
        _ = self.ffmpeg_path, self.ffprobe_path

    async def _probe_duration(self, input_path: str) -> float:
        # Missing binaries are fatal; unreadable metadata only disables progress
        self.ensure_available()
        try:
            info = await self.get_video_info(input_path)
        except TranscodeError as e:
            logger.warning(f"Could not determine duration of {input_path}, progress unavailable: {e}")
            return 0.0
        return info["duration"]

    @staticmethod
    async def _drain(stream: Optional[asyncio.StreamReader], tail: Deque[str]) -> None:
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                break
            tail.append(line.decode("utf-8", errors="ignore").rstrip())

    @staticmethod
    async def _cleanup_process(process: asyncio.subprocess.Process, context: str = "FFmpeg") -> None:
        """Kill a still-running subprocess and reap it"""
        if process.returncode is None:
            try:
                process.kill()
            except (ProcessLookupError, OSError):
                # Process already terminated
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning(f"{context} process did not terminate after kill")


# Global service instance
transcode_service = TranscodeService(settings.ffmpeg_path, settings.ffprobe_path)
