"""Configuration management."""

import os
import shutil
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class EncodingProfile(BaseModel):
    """Encoding parameters shared by every segment of a render.

    Concatenation with stream copy is only valid when all segments agree on
    these values, so a single profile is chosen per run and never mutated.
    """

    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)
    fps: int = Field(default=30, gt=0)
    video_codec: str = "libx264"
    preset: str = "fast"
    pix_fmt: str = "yuv420p"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    sample_rate: int = 44100
    channels: int = 2
    container: str = "mp4"

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def channel_layout(self) -> str:
        return "mono" if self.channels == 1 else "stereo"


class Config(BaseModel):
    """Application configuration."""

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("SCENEVID_WORKSPACE", ".")),
        description="Workspace directory"
    )
    temp_dir: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["SCENEVID_TEMP_DIR"]) if os.getenv("SCENEVID_TEMP_DIR") else None,
        description="Root for per-run working directories (defaults to <workspace>/temp)"
    )
    output_dir: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["SCENEVID_OUTPUT_DIR"]) if os.getenv("SCENEVID_OUTPUT_DIR") else None,
        description="Directory for rendered videos (defaults to <workspace>/output/videos)"
    )

    # External tools
    ffmpeg_binary: str = Field(
        default_factory=lambda: os.getenv("SCENEVID_FFMPEG_BINARY", "ffmpeg"),
        description="ffmpeg executable name or path"
    )

    # Scheduling
    max_workers: int = Field(
        default_factory=lambda: _env_int("SCENEVID_MAX_WORKERS", 2),
        description="Maximum concurrent segment encodes",
        ge=1
    )
    encode_timeout: float = Field(
        default_factory=lambda: _env_float("SCENEVID_ENCODE_TIMEOUT", 300.0),
        description="Seconds allowed for a single segment encode",
        gt=0
    )
    concat_timeout: float = Field(
        default_factory=lambda: _env_float("SCENEVID_CONCAT_TIMEOUT", 600.0),
        description="Seconds allowed for concatenation",
        gt=0
    )
    render_timeout: float = Field(
        default_factory=lambda: _env_float("SCENEVID_RENDER_TIMEOUT", 0.0),
        description="Seconds allowed for a whole render (0 disables)",
        ge=0
    )
    scene_interval: float = Field(
        default_factory=lambda: _env_float("SCENEVID_SCENE_INTERVAL", 0.0),
        description="Minimum seconds between scene-level operation starts",
        ge=0
    )
    encode_retries: int = Field(
        default_factory=lambda: _env_int("SCENEVID_ENCODE_RETRIES", 0),
        description="Extra encode attempts per scene before it is skipped",
        ge=0
    )
    retry_delay: float = Field(
        default_factory=lambda: _env_float("SCENEVID_RETRY_DELAY", 2.0),
        description="Base delay between encode retries (exponential backoff)",
        ge=0
    )
    thumbnails: bool = Field(
        default_factory=lambda: _env_bool("SCENEVID_THUMBNAILS"),
        description="Grab a JPEG thumbnail from every rendered video"
    )

    encoding: EncodingProfile = Field(
        default_factory=EncodingProfile,
        description="Segment encoding parameters"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def resolved_temp_dir(self) -> Path:
        return self.temp_dir or self.workspace / "temp"

    @property
    def resolved_output_dir(self) -> Path:
        return self.output_dir or self.workspace / "output" / "videos"

    def validate_required(self) -> None:
        """Validate that the ffmpeg binary can be found.

        Raises:
            ValueError: If ffmpeg is not on PATH and not an existing file.
        """
        if shutil.which(self.ffmpeg_binary) is None and not Path(self.ffmpeg_binary).is_file():
            raise ValueError(
                f"ffmpeg binary not found: {self.ffmpeg_binary}. "
                "Install ffmpeg or set SCENEVID_FFMPEG_BINARY."
            )


# Global config instance
config = Config()
