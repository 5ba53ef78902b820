"""
Tests for the job error taxonomy and its HTTP mapping.
"""

import pytest

from reelpress.core import errors


class TestErrorMapping:
    """Each error kind maps to one HTTP status."""

    @pytest.mark.parametrize(
        "error, status",
        [
            (errors.MissingFile(), 400),
            (errors.InvalidPreset("4k", ["720p", "1080p", "original"]), 400),
            (errors.UnsupportedMedia("Only video files are allowed"), 400),
            (errors.UploadTooLarge("File too large"), 413),
            (errors.AlreadyProcessing(), 409),
            (errors.AlreadyCompleted(), 409),
            (errors.NotReady(status="processing"), 409),
            (errors.Busy(3, 3), 429),
            (errors.JobNotFound(), 404),
            (errors.InputMissing(), 404),
            (errors.FileMissing(), 404),
            (errors.TranscodeError("FFmpeg failed with code 1"), 500),
        ],
    )
    def test_status_codes(self, error, status):
        assert error.status_code == status


class TestErrorPayloads:
    """Tests for client-facing error bodies."""

    def test_invalid_preset_message(self):
        error = errors.InvalidPreset("4k", ["720p", "1080p", "original"])
        assert error.message == "Invalid resolution. Choose 720p, 1080p, or original"
        assert error.to_dict()["allowed"] == ["720p", "1080p", "original"]

    def test_busy_carries_counts(self):
        error = errors.Busy(2, 2)
        payload = error.to_dict()
        assert payload["code"] == "busy"
        assert payload["active_jobs"] == 2
        assert payload["limit"] == 2
        assert error.current_active == 2

    def test_not_ready_reports_status(self):
        assert errors.NotReady(status="uploaded").to_dict()["status"] == "uploaded"

    def test_transcode_error_hides_diagnostics(self):
        """Raw FFmpeg output stays on the exception and out of the payload."""
        error = errors.TranscodeError("FFmpeg failed with code 1", returncode=1, stderr="moov atom not found")
        payload = error.to_dict()
        assert "moov atom" not in str(payload)
        assert payload["error"].startswith("Compression failed")
        assert str(error) == "FFmpeg failed with code 1"
        assert error.stderr == "moov atom not found"
