"""
Tests for upload validation, upload saving and artifact removal.
"""

import io

import pytest

from reelpress.core.errors import UnsupportedMedia, UploadTooLarge
from reelpress.services.file_service import (
    count_files,
    generate_upload_name,
    remove_artifact,
    save_upload,
    validate_video_upload,
)

ALLOWED = ["mp4", "mov", "avi", "mkv", "webm"]


class TestValidateVideoUpload:
    """Tests for extension and content type checks."""

    @pytest.mark.parametrize(
        "filename, content_type",
        [
            ("clip.mp4", "video/mp4"),
            ("CLIP.MOV", "video/quicktime"),
            ("clip.mkv", "video/x-matroska"),
            ("clip.webm", "video/webm"),
        ],
    )
    def test_accepts_videos(self, filename, content_type):
        assert validate_video_upload(filename, content_type, ALLOWED) == content_type

    def test_guesses_generic_content_type(self):
        assert validate_video_upload("clip.mp4", "application/octet-stream", ALLOWED) == "video/mp4"

    @pytest.mark.parametrize(
        "filename, content_type",
        [
            ("notes.txt", "text/plain"),
            ("clip.mp4", "image/png"),
            ("clip.exe", "video/mp4"),
            ("noextension", "video/mp4"),
        ],
    )
    def test_rejects_non_videos(self, filename, content_type):
        with pytest.raises(UnsupportedMedia):
            validate_video_upload(filename, content_type, ALLOWED)


class TestSaveUpload:
    """Tests for streaming uploads to disk."""

    def test_writes_file(self, tmp_path):
        destination = tmp_path / "video.mp4"
        written = save_upload(io.BytesIO(b"a" * 3000), destination, max_bytes=4000)
        assert written == 3000
        assert destination.read_bytes() == b"a" * 3000

    def test_too_large_leaves_nothing(self, tmp_path):
        destination = tmp_path / "video.mp4"
        with pytest.raises(UploadTooLarge):
            save_upload(io.BytesIO(b"a" * 5000), destination, max_bytes=4000)
        assert not destination.exists()


class TestArtifacts:
    """Tests for artifact helpers."""

    def test_generate_upload_name(self):
        name = generate_upload_name("Holiday.MOV")
        assert name.startswith("video-")
        assert name.endswith(".mov")
        assert generate_upload_name("Holiday.MOV") != name

    def test_remove_is_idempotent(self, tmp_path):
        path = tmp_path / "out.mp4"
        path.write_bytes(b"x")
        assert remove_artifact(path) is True
        assert remove_artifact(path) is False
        assert remove_artifact(None) is False

    def test_count_files(self, tmp_path):
        (tmp_path / "a.mp4").write_bytes(b"x")
        (tmp_path / "b.mp4").write_bytes(b"x")
        (tmp_path / "sub").mkdir()
        assert count_files(tmp_path) == 2
        assert count_files(tmp_path / "missing") == 0
