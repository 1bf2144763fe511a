"""Join encoded segments into one video without re-encoding."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

import ffmpeg

from ..config import config
from ..errors import ConcatenationFailure
from .probe import has_content
from .process import ProcessError, run_ffmpeg

logger = logging.getLogger(__name__)

MANIFEST_NAME = "concat_list.txt"


class SegmentConcatenator(ABC):
    """Joins segments that share one stream layout, in the order given."""

    @abstractmethod
    async def concatenate(
        self,
        segment_paths: Sequence[Path],
        output_path: Path,
        work_dir: Path,
    ) -> Path:
        """Concatenate segments into a single file.

        Args:
            segment_paths: Segments in playback order.
            output_path: Destination of the joined video.
            work_dir: Scratch directory for intermediate files.

        Returns:
            Path to the joined video.

        Raises:
            ConcatenationFailure: If nothing was supplied or the join failed.
        """
        ...


def _quote(path: Path) -> str:
    # concat demuxer syntax: single-quoted, embedded quotes as '\''
    return "'" + str(path).replace("'", "'\\''") + "'"


def write_manifest(segment_paths: Sequence[Path], manifest_path: Path) -> Path:
    """Write an ffmpeg concat demuxer manifest listing segments in order.

    Args:
        segment_paths: Segments in playback order.
        manifest_path: Where to write the manifest.

    Returns:
        The manifest path.
    """
    lines = [f"file {_quote(Path(path).absolute())}" for path in segment_paths]
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return manifest_path


class FfmpegConcatenator(SegmentConcatenator):
    """Concatenator backed by ffmpeg's concat demuxer with stream copy."""

    def __init__(
        self,
        ffmpeg_binary: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the concatenator.

        Args:
            ffmpeg_binary: ffmpeg executable. Defaults to config.ffmpeg_binary.
            timeout: Seconds allowed for the join. Defaults to config.concat_timeout.
        """
        self._ffmpeg = ffmpeg_binary or config.ffmpeg_binary
        self._timeout = timeout or config.concat_timeout

    def build_command(self, manifest_path: Path, output_path: Path) -> List[str]:
        """Build the stream-copy concat command line."""
        return (
            ffmpeg
            .input(str(manifest_path), f="concat", safe=0)
            .output(str(output_path), c="copy", movflags="+faststart")
            .global_args("-hide_banner", "-loglevel", "error")
            .overwrite_output()
            .compile(cmd=self._ffmpeg)
        )

    async def concatenate(
        self,
        segment_paths: Sequence[Path],
        output_path: Path,
        work_dir: Path,
    ) -> Path:
        if not segment_paths:
            raise ConcatenationFailure("No segments to concatenate")

        manifest = write_manifest(segment_paths, work_dir / MANIFEST_NAME)
        args = self.build_command(manifest, output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Concatenating {len(segment_paths)} segments -> {output_path}")

        try:
            try:
                await run_ffmpeg(args, timeout=self._timeout)
            except ProcessError as e:
                detail = f": {e.stderr}" if e.stderr else ""
                raise ConcatenationFailure(f"{e}{detail}") from e

            if not has_content(output_path):
                raise ConcatenationFailure(f"Concatenation produced no output at {output_path}")
        except BaseException:
            output_path.unlink(missing_ok=True)
            raise
        finally:
            manifest.unlink(missing_ok=True)

        return output_path
