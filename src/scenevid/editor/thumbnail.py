"""Thumbnail extraction for rendered videos."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import ffmpeg

from ..config import config
from .probe import has_content
from .process import run_ffmpeg

logger = logging.getLogger(__name__)


def thumbnail_path_for(video_path: Path) -> Path:
    return video_path.with_name(f"{video_path.stem}_thumb.jpg")


def build_thumbnail_command(
    video_path: Path,
    thumbnail_path: Path,
    timestamp: float = 1.0,
    size: Tuple[int, int] = (1280, 720),
    ffmpeg_binary: Optional[str] = None,
) -> List[str]:
    """Build the command line that grabs one frame as a JPEG."""
    width, height = size
    return (
        ffmpeg
        .input(str(video_path), ss=timestamp)
        .filter("scale", width, height)
        .output(str(thumbnail_path), vframes=1, format="image2", vcodec="mjpeg")
        .global_args("-hide_banner", "-loglevel", "error")
        .overwrite_output()
        .compile(cmd=ffmpeg_binary or config.ffmpeg_binary)
    )


async def generate_thumbnail(
    video_path: Path,
    timestamp: float = 1.0,
    size: Tuple[int, int] = (1280, 720),
    duration: Optional[float] = None,
    ffmpeg_binary: Optional[str] = None,
    timeout: Optional[float] = 60.0,
) -> Path:
    """Save a frame of the video next to it as ``<name>_thumb.jpg``.

    Args:
        video_path: Rendered video.
        timestamp: Time of the frame in seconds.
        size: Thumbnail width and height.
        duration: Video length; the timestamp is clamped to fit inside it.
        ffmpeg_binary: ffmpeg executable. Defaults to config.ffmpeg_binary.
        timeout: Seconds allowed for the grab.

    Returns:
        Path to the thumbnail.

    Raises:
        ProcessError: If ffmpeg fails.
        RuntimeError: If no thumbnail was written.
    """
    if duration is not None:
        timestamp = max(0.0, min(timestamp, duration / 2))

    thumbnail_path = thumbnail_path_for(video_path)
    args = build_thumbnail_command(video_path, thumbnail_path, timestamp, size, ffmpeg_binary)
    await run_ffmpeg(args, timeout=timeout)

    if not has_content(thumbnail_path):
        raise RuntimeError(f"ffmpeg did not create thumbnail {thumbnail_path}")

    logger.info(f"Thumbnail saved: {thumbnail_path}")
    return thumbnail_path
