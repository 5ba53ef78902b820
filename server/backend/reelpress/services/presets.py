# Quality presets - resolution key -> FFmpeg encoding parameters

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Preset:
    """Encoding parameters for one resolution key"""

    key: str
    scale: Optional[str]  # FFmpeg scale filter options, None keeps the source resolution
    max_dimension: Optional[int]
    video_bitrate: Optional[str]  # None means quality-constrained only (CRF)
    audio_bitrate: str
    crf: int
    speed: str  # x264 -preset
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Scale filters fit the frame inside the box without upscaling and keep
# dimensions even, which preserves portrait orientation.
QUALITY_PRESETS: Dict[str, Preset] = {
    "720p": Preset(
        key="720p",
        scale="min(1280\\,iw):min(720\\,ih):force_original_aspect_ratio=decrease:force_divisible_by=2",
        max_dimension=720,
        video_bitrate="2500k",
        audio_bitrate="128k",
        crf=23,
        speed="medium",
        description="HD 720p - Optimized for social media (preserves orientation)",
    ),
    "1080p": Preset(
        key="1080p",
        scale="min(1920\\,iw):min(1080\\,ih):force_original_aspect_ratio=decrease:force_divisible_by=2",
        max_dimension=1080,
        video_bitrate="5000k",
        audio_bitrate="192k",
        crf=23,
        speed="medium",
        description="Full HD 1080p - High quality for reels/TikTok (preserves orientation)",
    ),
    "original": Preset(
        key="original",
        scale=None,
        max_dimension=None,
        video_bitrate=None,
        audio_bitrate="192k",
        crf=23,
        speed="medium",
        description="Original resolution - Quality compression only (preserves orientation)",
    ),
}

DEFAULT_PRESET = "1080p"


def is_valid(key: Optional[str]) -> bool:
    return key in QUALITY_PRESETS


def resolve(key: Optional[str]) -> Preset:
    """Look up a preset, falling back to the default for unknown or missing keys"""
    return QUALITY_PRESETS.get(key or DEFAULT_PRESET, QUALITY_PRESETS[DEFAULT_PRESET])


def list_presets() -> List[Dict[str, Any]]:
    return [preset.to_dict() for preset in QUALITY_PRESETS.values()]
