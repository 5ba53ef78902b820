# File operations - upload validation, saving uploads to disk, artifact removal

from typing import BinaryIO, Iterable, Optional
import logging
import mimetypes
import os
import random
import time
from pathlib import Path

from reelpress.core.errors import UnsupportedMedia, UploadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def generate_upload_name(filename: str) -> str:
    """
    Generate a unique on-disk name for an uploaded file

    Args:
        filename: Original filename

    Returns:
        str: Name like video-<millis>-<random>.<ext>
    """
    _, ext = os.path.splitext(filename)
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"video-{unique_suffix}{ext.lower()}"


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    """Fall back to a guess from the filename when the client sent a generic type"""
    if not content_type or content_type == "application/octet-stream":
        guessed_type, _ = mimetypes.guess_type(filename)
        if guessed_type:
            return guessed_type
    return content_type or "application/octet-stream"


def validate_video_upload(filename: str, content_type: Optional[str], allowed_extensions: Iterable[str]) -> str:
    """
    Check that an upload looks like a video in one of the accepted containers

    Returns:
        str: The effective content type

    Raises:
        UnsupportedMedia: extension or MIME type not accepted
    """
    allowed = [ext.lower() for ext in allowed_extensions]
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    content_type = resolve_content_type(filename, content_type)

    type_ok = content_type.startswith("video/") or any(token in content_type for token in allowed)
    if ext not in allowed or not type_ok:
        raise UnsupportedMedia(
            f"Only video files are allowed ({', '.join(allowed)})",
            filename=filename,
            content_type=content_type,
        )
    return content_type


def save_upload(file_obj: BinaryIO, destination: Path, max_bytes: int) -> int:
    """
    Stream an uploaded file to disk, enforcing a size ceiling

    Args:
        file_obj: File-like object to read from
        destination: Target path (parent must exist)
        max_bytes: Maximum accepted size in bytes

    Returns:
        int: Number of bytes written

    Raises:
        UploadTooLarge: the upload exceeded max_bytes; nothing is left on disk
    """
    written = 0
    try:
        with open(destination, "wb") as out:
            while chunk := file_obj.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLarge(
                        f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
                        max_bytes=max_bytes,
                    )
                out.write(chunk)
    except BaseException:
        remove_artifact(destination)
        raise

    logger.info(f"Saved upload {destination.name} ({written / 1024 / 1024:.2f} MB)")
    return written


def remove_artifact(path) -> bool:
    """
    Delete a job artifact; a path that is already gone is not an error

    Returns:
        bool: True if a file was removed
    """
    if not path:
        return False
    try:
        os.remove(path)
        logger.debug(f"Removed artifact {path}")
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.error(f"Failed to remove artifact {path}: {e}")
        return False


def count_files(directory: Path) -> int:
    try:
        return sum(1 for entry in os.scandir(directory) if entry.is_file())
    except FileNotFoundError:
        return 0
