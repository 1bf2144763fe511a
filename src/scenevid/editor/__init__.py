"""Segment encoding and assembly."""

from .resolver import AssetResolver, ResolvedAssets
from .encoder import SegmentEncoder, FfmpegSegmentEncoder
from .concat import SegmentConcatenator, FfmpegConcatenator, write_manifest
from .thumbnail import generate_thumbnail, thumbnail_path_for
from .process import ProcessError, ProcessTimeout, run_ffmpeg
from .probe import get_audio_duration, get_video_info, has_content

__all__ = [
    # Resolver
    "AssetResolver",
    "ResolvedAssets",
    # Encoder
    "SegmentEncoder",
    "FfmpegSegmentEncoder",
    # Concatenation
    "SegmentConcatenator",
    "FfmpegConcatenator",
    "write_manifest",
    # Thumbnail
    "generate_thumbnail",
    "thumbnail_path_for",
    # Process
    "ProcessError",
    "ProcessTimeout",
    "run_ffmpeg",
    # Probe
    "get_audio_duration",
    "get_video_info",
    "has_content",
]
