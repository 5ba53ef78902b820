"""
Tests for the FFmpeg transcode service: progress parsing, command building,
binary discovery and the subprocess progress stream.
"""

import stat
import subprocess
import sys
from pathlib import Path
from unittest import mock

import pytest

from reelpress.core.errors import TranscodeError
from reelpress.services.presets import QUALITY_PRESETS
from reelpress.services.transcode_service import TranscodeService, parse_progress_line

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as a fake ffmpeg")


class TestParseProgressLine:
    """Tests for reading FFmpeg -progress output."""

    def test_out_time_is_microseconds(self):
        # 5 s into a 10 s clip
        assert parse_progress_line("out_time_ms=5000000\n", 10.0) == 50

    def test_clamped_to_range(self):
        assert parse_progress_line("out_time_ms=99000000", 10.0) == 100
        assert parse_progress_line("out_time_ms=-100", 10.0) == 0

    @pytest.mark.parametrize("line", ["progress=continue", "frame=120", "out_time_ms=N/A", ""])
    def test_other_lines_ignored(self, line):
        assert parse_progress_line(line, 10.0) is None

    def test_unknown_duration(self):
        assert parse_progress_line("out_time_ms=5000000", 0) is None


class TestBuildCommand:
    """Tests for FFmpeg argument construction."""

    @pytest.fixture
    def service(self):
        service = TranscodeService()
        service._ffmpeg_path = "ffmpeg"
        service._ffprobe_path = "ffprobe"
        return service

    def test_scaled_preset(self, service):
        preset = QUALITY_PRESETS["720p"]
        cmd = service.build_command("in.mov", "out.mp4", preset)
        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-i") + 1] == "in.mov"
        assert cmd[-1] == "out.mp4"
        assert cmd[cmd.index("-vf") + 1] == f"scale={preset.scale}"
        assert cmd[cmd.index("-b:v") + 1] == "2500k"
        assert cmd[cmd.index("-b:a") + 1] == "128k"
        assert cmd[cmd.index("-crf") + 1] == str(preset.crf)

    def test_original_preset_keeps_dimensions(self, service):
        cmd = service.build_command("in.mov", "out.mp4", QUALITY_PRESETS["original"])
        assert "-vf" not in cmd
        assert "-b:v" not in cmd

    def test_mp4_output_with_progress(self, service):
        cmd = service.build_command("in.mov", "out.mp4", QUALITY_PRESETS["1080p"])
        assert cmd[cmd.index("-f") + 1] == "mp4"
        assert cmd[cmd.index("-c:v") + 1] == "libx264"
        assert cmd[cmd.index("-movflags") + 1] == "+faststart"
        assert cmd[cmd.index("-progress") + 1] == "pipe:1"


class TestFindBinary:
    """Tests for FFmpeg binary discovery."""

    def test_missing_binary_raises(self):
        service = TranscodeService()
        with mock.patch("reelpress.services.transcode_service.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(TranscodeError, match="ffmpeg not found"):
                service.ffmpeg_path

    def test_configured_path_preferred(self):
        service = TranscodeService(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg")
        ok = subprocess.CompletedProcess(args=[], returncode=0)
        with mock.patch("reelpress.services.transcode_service.subprocess.run", return_value=ok) as run:
            assert service.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
            assert service.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
        run.assert_called_once()


def write_script(path: Path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return str(path)


SUCCESS_SCRIPT = """
for last; do :; done
[ "$1" = "-version" ] && exit 0
echo "frame=10"
echo "out_time_ms=2500000"
echo "progress=continue"
echo "out_time_ms=5000000"
echo "progress=end"
printf 'compressed' > "$last"
exit 0
"""

FAILURE_SCRIPT = """
[ "$1" = "-version" ] && exit 0
echo "out_time_ms=1000000"
echo "moov atom not found" >&2
echo "Invalid data found when processing input" >&2
exit 1
"""

EMPTY_OUTPUT_SCRIPT = """
[ "$1" = "-version" ] && exit 0
exit 0
"""


@posix_only
class TestTranscodeStream:
    """Tests for the async progress stream against a scripted fake ffmpeg."""

    def _service(self, tmp_path: Path, script: str) -> TranscodeService:
        ffmpeg = write_script(tmp_path / "ffmpeg", script)
        service = TranscodeService(ffmpeg_path=ffmpeg, ffprobe_path=ffmpeg)
        service.get_video_info = mock.AsyncMock(return_value={"duration": 10.0})
        return service

    async def test_yields_progress_then_100(self, tmp_path):
        service = self._service(tmp_path, SUCCESS_SCRIPT)
        output = tmp_path / "out.mp4"
        values = [p async for p in service.transcode("in.mov", str(output), QUALITY_PRESETS["720p"])]
        assert values == [25, 50, 100]
        assert output.read_bytes() == b"compressed"

    async def test_failure_raises_with_stderr_tail(self, tmp_path):
        service = self._service(tmp_path, FAILURE_SCRIPT)
        values = []
        with pytest.raises(TranscodeError) as exc_info:
            async for p in service.transcode("in.mov", str(tmp_path / "out.mp4"), QUALITY_PRESETS["720p"]):
                values.append(p)
        assert values == [10]
        assert exc_info.value.returncode == 1
        assert "Invalid data found" in exc_info.value.stderr

    async def test_missing_output_is_failure(self, tmp_path):
        service = self._service(tmp_path, EMPTY_OUTPUT_SCRIPT)
        with pytest.raises(TranscodeError, match="no output"):
            async for _ in service.transcode("in.mov", str(tmp_path / "out.mp4"), QUALITY_PRESETS["original"]):
                pass

    async def test_unknown_duration_still_completes(self, tmp_path):
        service = self._service(tmp_path, SUCCESS_SCRIPT)
        service.get_video_info = mock.AsyncMock(side_effect=TranscodeError("No video stream found in file"))
        values = [p async for p in service.transcode("in.mov", str(tmp_path / "out.mp4"), QUALITY_PRESETS["1080p"])]
        assert values == [100]
