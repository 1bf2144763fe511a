"""Media inspection helpers."""

from pathlib import Path

from moviepy import AudioFileClip, VideoFileClip


def has_content(path: Path) -> bool:
    """Return True if the path is an existing, non-empty file."""
    return path.is_file() and path.stat().st_size > 0


def get_audio_duration(audio_path: Path) -> float:
    """Get the duration of an audio file.

    Args:
        audio_path: Path to audio file.

    Returns:
        Duration in seconds.

    Raises:
        FileNotFoundError: If audio file doesn't exist.
    """
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    audio = AudioFileClip(str(audio_path))
    try:
        return audio.duration
    finally:
        audio.close()


def get_video_info(video_path: Path) -> dict:
    """Read duration, size and audio presence of a video file.

    Args:
        video_path: Path to video file.

    Returns:
        Dict with ``duration``, ``width``, ``height`` and ``has_audio``.

    Raises:
        FileNotFoundError: If video file doesn't exist.
    """
    if not video_path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")

    clip = VideoFileClip(str(video_path))
    try:
        return {
            "duration": clip.duration,
            "width": clip.w,
            "height": clip.h,
            "has_audio": clip.audio is not None,
        }
    finally:
        clip.close()
