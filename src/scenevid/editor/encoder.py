"""Encode one scene (still image plus narration) into a video segment."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

import ffmpeg

from ..config import EncodingProfile, config
from ..errors import EncodingFailure, MissingSceneAsset
from ..models import Scene
from .probe import get_video_info, has_content
from .process import ProcessError, run_ffmpeg

logger = logging.getLogger(__name__)


class SegmentEncoder(ABC):
    """Turns a scene's resolved assets into a fixed-format video segment.

    Implementations must give every segment the same stream layout (one
    video and one audio stream, identical codec parameters) so segments can
    be joined without re-encoding.
    """

    @abstractmethod
    async def encode_segment(
        self,
        scene: Scene,
        image_path: Path,
        audio_path: Optional[Path],
        output_path: Path,
    ) -> Path:
        """Encode a segment lasting ``scene.duration`` seconds.

        Args:
            scene: Scene being encoded.
            image_path: Still image to hold for the whole scene.
            audio_path: Narration, or None to synthesize silence.
            output_path: Where to write the segment.

        Returns:
            Path to the finished segment.

        Raises:
            MissingSceneAsset: If the image file does not exist.
            EncodingFailure: If the segment could not be produced.
        """
        ...


class FfmpegSegmentEncoder(SegmentEncoder):
    """Segment encoder backed by the ffmpeg binary.

    The image is scaled to fit the frame, centred on padding and held for
    the scene duration. Narration is re-encoded and padded with silence or
    truncated to the scene length; scenes without narration get a silent
    track so that all segments share one stream layout.
    """

    def __init__(
        self,
        profile: Optional[EncodingProfile] = None,
        ffmpeg_binary: Optional[str] = None,
        timeout: Optional[float] = None,
        verify: bool = True,
    ) -> None:
        """Initialize the encoder.

        Args:
            profile: Encoding parameters. Defaults to config.encoding.
            ffmpeg_binary: ffmpeg executable. Defaults to config.ffmpeg_binary.
            timeout: Seconds allowed per segment. Defaults to config.encode_timeout.
            verify: Re-open each finished segment to check it is readable.
        """
        self._profile = profile or config.encoding
        self._ffmpeg = ffmpeg_binary or config.ffmpeg_binary
        self._timeout = timeout or config.encode_timeout
        self._verify = verify

    @property
    def profile(self) -> EncodingProfile:
        """Return the encoding profile shared by all segments."""
        return self._profile

    def build_command(
        self,
        scene: Scene,
        image_path: Path,
        audio_path: Optional[Path],
        output_path: Path,
    ) -> List[str]:
        """Build the ffmpeg command line for one segment.

        Args:
            scene: Scene being encoded.
            image_path: Still image.
            audio_path: Narration file, or None for silence.
            output_path: Segment destination.

        Returns:
            Command line, executable first.
        """
        p = self._profile
        duration = scene.duration

        video = (
            ffmpeg
            .input(str(image_path), loop=1, t=duration, framerate=p.fps)
            .video
            .filter("scale", p.width, p.height, force_original_aspect_ratio="decrease")
            .filter("pad", p.width, p.height, "(ow-iw)/2", "(oh-ih)/2")
            .filter("setsar", 1)
        )

        if audio_path is not None:
            # Pad short narration so the clip always lasts the full scene
            audio = ffmpeg.input(str(audio_path)).audio.filter("apad")
        else:
            audio = ffmpeg.input(
                f"anullsrc=channel_layout={p.channel_layout}:sample_rate={p.sample_rate}",
                f="lavfi",
                t=duration,
            ).audio

        stream = ffmpeg.output(
            video,
            audio,
            str(output_path),
            vcodec=p.video_codec,
            preset=p.preset,
            pix_fmt=p.pix_fmt,
            r=p.fps,
            acodec=p.audio_codec,
            audio_bitrate=p.audio_bitrate,
            ar=p.sample_rate,
            ac=p.channels,
            t=duration,
            shortest=None,
            movflags="+faststart",
            f=p.container,
        )
        return (
            stream
            .global_args("-hide_banner", "-loglevel", "error")
            .overwrite_output()
            .compile(cmd=self._ffmpeg)
        )

    async def encode_segment(
        self,
        scene: Scene,
        image_path: Path,
        audio_path: Optional[Path],
        output_path: Path,
    ) -> Path:
        if not has_content(image_path):
            raise MissingSceneAsset(f"Image not found: {image_path}", scene_id=scene.id)

        narration = audio_path if audio_path is not None and has_content(audio_path) else None
        if narration is None:
            if audio_path is not None:
                logger.warning(f"Scene {scene.id}: narration {audio_path} missing or empty, using silence")
            else:
                logger.debug(f"Scene {scene.id}: no narration, using silence")

        args = self.build_command(scene, image_path, narration, output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Encoding scene {scene.id} ({scene.duration}s) -> {output_path.name}")

        try:
            try:
                await run_ffmpeg(args, timeout=self._timeout)
            except ProcessError as e:
                detail = f": {e.stderr}" if e.stderr else ""
                raise EncodingFailure(f"{e}{detail}", scene_id=scene.id) from e

            await self._check_output(scene, output_path)
        except BaseException:
            output_path.unlink(missing_ok=True)
            raise

        return output_path

    async def _check_output(self, scene: Scene, output_path: Path) -> None:
        if not has_content(output_path):
            raise EncodingFailure(f"Encoder produced no output at {output_path}", scene_id=scene.id)

        if not self._verify:
            return

        try:
            info = await asyncio.to_thread(get_video_info, output_path)
        except Exception as e:
            raise EncodingFailure(f"Unreadable segment {output_path}: {e}", scene_id=scene.id) from e

        if not info["duration"] or info["duration"] <= 0:
            raise EncodingFailure(f"Segment {output_path} has no duration", scene_id=scene.id)
        if not info["has_audio"]:
            raise EncodingFailure(f"Segment {output_path} has no audio stream", scene_id=scene.id)
