"""Render pipeline: scenes plus assets in, one video file out."""

import asyncio
import dataclasses
import logging
import uuid
import warnings
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .config import config
from .editor import (
    AssetResolver,
    FfmpegConcatenator,
    FfmpegSegmentEncoder,
    ProcessError,
    ResolvedAssets,
    SegmentConcatenator,
    SegmentEncoder,
    generate_thumbnail,
    thumbnail_path_for,
)
from .errors import (
    CleanupWarning,
    EncodingFailure,
    InvalidScript,
    MissingSceneAsset,
    NoValidSegments,
    RenderError,
    RenderTimeout,
)
from .models import (
    AudioAsset,
    ImageAsset,
    OutputArtifact,
    RenderProgress,
    RenderState,
    SceneSkip,
    Script,
    Segment,
    SkipReason,
)
from .pacing import RatePolicy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RenderProgress], None]


class RenderPipeline:
    """Turns a script and its per-scene assets into a single video.

    Each scene with an image becomes one segment; scenes without an image,
    or whose segment fails to encode, are skipped with a warning. Segments
    are concatenated in script order and every temporary file is removed
    when the run ends, whatever the outcome.

    Encoder and concatenator are injected so runs can be tested without
    ffmpeg; the defaults are built from the global config.
    """

    def __init__(
        self,
        encoder: Optional[SegmentEncoder] = None,
        concatenator: Optional[SegmentConcatenator] = None,
        temp_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        max_workers: Optional[int] = None,
        rate_policy: Optional[RatePolicy] = None,
        render_timeout: Optional[float] = None,
        thumbnails: Optional[bool] = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            encoder: Segment encoder. Defaults to FfmpegSegmentEncoder.
            concatenator: Segment concatenator. Defaults to FfmpegConcatenator.
            temp_dir: Root for per-run working directories.
            output_dir: Directory for rendered videos.
            max_workers: Maximum concurrent encodes.
            rate_policy: Spacing and retry policy for scene encodes.
            render_timeout: Seconds allowed per render; 0 or None disables.
            thumbnails: Grab a thumbnail from each rendered video.
        """
        self._encoder = encoder or FfmpegSegmentEncoder()
        self._concatenator = concatenator or FfmpegConcatenator()
        self._temp_dir = Path(temp_dir or config.resolved_temp_dir)
        self._output_dir = Path(output_dir or config.resolved_output_dir)
        self._max_workers = max_workers or config.max_workers
        self._rate_policy = rate_policy or RatePolicy(
            min_interval=config.scene_interval,
            max_retries=config.encode_retries,
            retry_delay=config.retry_delay,
        )
        self._render_timeout = render_timeout if render_timeout is not None else config.render_timeout
        self._thumbnails = config.thumbnails if thumbnails is None else thumbnails

        if self._max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    async def render(
        self,
        script: Script,
        images: Iterable[ImageAsset],
        audio: Iterable[AudioAsset] = (),
        progress_callback: Optional[ProgressCallback] = None,
    ) -> OutputArtifact:
        """Render a script into one video file.

        Args:
            script: Finalized script; scenes are rendered in list order.
            images: Image assets, matched to scenes by scene id.
            audio: Narration assets, matched to scenes by scene id.
            progress_callback: Called with a RenderProgress snapshot on
                every state change and after every scene settles.

        Returns:
            OutputArtifact describing the rendered file.

        Raises:
            InvalidScript: If the script has no scenes.
            NoValidSegments: If no scene produced a segment.
            ConcatenationFailure: If the segments could not be joined.
            RenderTimeout: If the render exceeded its timeout.
        """
        if not script.scenes:
            raise InvalidScript("Script has no scenes", stage=RenderState.INIT.value)

        run_id = uuid.uuid4().hex
        progress = RenderProgress(run_id=run_id, state=RenderState.INIT, total_scenes=len(script.scenes))
        resolver = AssetResolver(images, audio)

        if not self._render_timeout:
            return await self._run(script, resolver, progress, progress_callback)

        try:
            return await asyncio.wait_for(
                self._run(script, resolver, progress, progress_callback),
                self._render_timeout,
            )
        except asyncio.TimeoutError:
            raise RenderTimeout(
                f"Render exceeded {self._render_timeout}s",
                run_id=run_id,
                stage=(progress.failed_stage or progress.state).value,
            ) from None

    def render_sync(
        self,
        script: Script,
        images: Iterable[ImageAsset],
        audio: Iterable[AudioAsset] = (),
        progress_callback: Optional[ProgressCallback] = None,
    ) -> OutputArtifact:
        """Blocking wrapper around render() for callers without an event loop."""
        return asyncio.run(self.render(script, images, audio, progress_callback))

    async def _run(
        self,
        script: Script,
        resolver: AssetResolver,
        progress: RenderProgress,
        progress_callback: Optional[ProgressCallback],
    ) -> OutputArtifact:
        run_id = progress.run_id
        work_dir = self._temp_dir / run_id
        output_path = self._output_dir / f"{run_id}.mp4"
        work_dir.mkdir(parents=True, exist_ok=False)

        logger.info(
            f"Starting render {run_id}: {len(script.scenes)} scenes, "
            f"declared duration {script.declared_duration:.1f}s"
        )
        skipped: List[SceneSkip] = []

        try:
            self._transition(progress, RenderState.RESOLVING, progress_callback)
            candidates: List[tuple] = []
            for index, scene in enumerate(script.scenes):
                assets = resolver.resolve(scene)
                logger.info(
                    f"Scene {scene.id} ({index + 1}/{len(script.scenes)}): {scene.duration}s, "
                    f"image {'OK' if assets.has_image else 'MISSING'}, "
                    f"audio {'SILENT' if assets.is_silent else 'OK'}"
                )
                if not assets.has_image:
                    self._skip(
                        skipped, progress, progress_callback, index, scene.id,
                        SkipReason.MISSING_IMAGE, "no image asset",
                    )
                    continue
                candidates.append((index, assets))

            self._transition(progress, RenderState.ENCODING, progress_callback)
            segments = await self._encode_all(candidates, work_dir, skipped, progress, progress_callback)

            if not segments:
                raise NoValidSegments(f"No valid segments created ({len(skipped)} scenes skipped)")
            logger.info(f"{len(segments)} segments created, {len(skipped)} scenes skipped")

            self._transition(progress, RenderState.CONCATENATING, progress_callback)
            await self._concatenator.concatenate(
                [segment.file_path for segment in segments], output_path, work_dir
            )

            self._transition(progress, RenderState.FINALIZING, progress_callback)
            size_bytes = output_path.stat().st_size
            total_duration = sum(segment.duration for segment in segments)
            thumbnail_path = await self._thumbnail(output_path, total_duration) if self._thumbnails else None

            artifact = OutputArtifact(
                id=run_id,
                file_path=output_path,
                size_bytes=size_bytes,
                total_duration=total_duration,
                segment_count=len(segments),
                skipped=sorted(skipped, key=lambda skip: skip.scene_index),
                thumbnail_path=thumbnail_path,
            )
            self._transition(progress, RenderState.DONE, progress_callback)
            logger.info(
                f"Render {run_id} complete: {output_path} "
                f"({size_bytes / (1024 * 1024):.2f} MB, {total_duration:.1f}s)"
            )
            return artifact

        except RenderError as e:
            e.with_context(run_id=run_id, stage=progress.state.value)
            self._fail(progress, progress_callback, output_path)
            logger.error(f"Render failed: {e}")
            raise
        except BaseException:
            stage = progress.state.value
            self._fail(progress, progress_callback, output_path)
            logger.error(f"Render {run_id} aborted during {stage}")
            raise
        finally:
            self._cleanup(work_dir)

    async def _encode_all(
        self,
        candidates: Sequence[tuple],
        work_dir: Path,
        skipped: List[SceneSkip],
        progress: RenderProgress,
        progress_callback: Optional[ProgressCallback],
    ) -> List[Segment]:
        semaphore = asyncio.Semaphore(self._max_workers)

        async def encode(index: int, assets: ResolvedAssets) -> Optional[Segment]:
            async with semaphore:
                await self._rate_policy.wait_turn()
                return await self._encode_scene(
                    index, assets, work_dir, skipped, progress, progress_callback
                )

        tasks = [asyncio.ensure_future(encode(index, assets)) for index, assets in candidates]
        try:
            # gather keeps submission order, so segments stay in scene order
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [segment for segment in results if segment is not None]

    async def _encode_scene(
        self,
        index: int,
        assets: ResolvedAssets,
        work_dir: Path,
        skipped: List[SceneSkip],
        progress: RenderProgress,
        progress_callback: Optional[ProgressCallback],
    ) -> Optional[Segment]:
        scene = assets.scene
        segment_path = work_dir / f"segment_{index:04d}.mp4"
        attempt = 0

        while True:
            try:
                path = await self._encoder.encode_segment(
                    scene, assets.image_path, assets.audio_path, segment_path
                )
                break
            except MissingSceneAsset as e:
                self._skip(
                    skipped, progress, progress_callback, index, scene.id,
                    SkipReason.MISSING_IMAGE, e.message,
                )
                return None
            except EncodingFailure as e:
                if attempt >= self._rate_policy.max_retries:
                    self._skip(
                        skipped, progress, progress_callback, index, scene.id,
                        SkipReason.ENCODING_FAILED, e.message,
                    )
                    return None
                attempt += 1
                delay = self._rate_policy.backoff_delay(attempt)
                logger.warning(
                    f"Scene {scene.id} encode failed ({e.message}), "
                    f"retry {attempt}/{self._rate_policy.max_retries} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        progress.encoded += 1
        self._notify(progress, progress_callback)
        return Segment(scene_index=index, scene_id=scene.id, file_path=path, duration=scene.duration)

    def _skip(
        self,
        skipped: List[SceneSkip],
        progress: RenderProgress,
        progress_callback: Optional[ProgressCallback],
        index: int,
        scene_id: int,
        reason: SkipReason,
        detail: str,
    ) -> None:
        logger.warning(f"Skipping scene {scene_id}: {reason.value} ({detail})")
        skipped.append(SceneSkip(scene_id=scene_id, scene_index=index, reason=reason, detail=detail))
        progress.skipped += 1
        self._notify(progress, progress_callback)

    async def _thumbnail(self, video_path: Path, duration: float) -> Optional[Path]:
        try:
            return await generate_thumbnail(video_path, duration=duration)
        except (ProcessError, RuntimeError) as e:
            logger.warning(f"Thumbnail generation failed: {e}")
            return None

    def _transition(
        self,
        progress: RenderProgress,
        state: RenderState,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        logger.debug(f"Render {progress.run_id}: {progress.state.value} -> {state.value}")
        progress.state = state
        self._notify(progress, progress_callback)

    def _fail(
        self,
        progress: RenderProgress,
        progress_callback: Optional[ProgressCallback],
        output_path: Path,
    ) -> None:
        # Ownership of the output only passes to the caller on success
        output_path.unlink(missing_ok=True)
        thumbnail_path_for(output_path).unlink(missing_ok=True)
        progress.failed_stage = progress.state
        progress.state = RenderState.FAILED
        self._notify(progress, progress_callback)

    @staticmethod
    def _notify(progress: RenderProgress, progress_callback: Optional[ProgressCallback]) -> None:
        if progress_callback is not None:
            progress_callback(dataclasses.replace(progress))

    def _cleanup(self, work_dir: Path) -> None:
        """Remove the run's working directory and everything in it."""
        if not work_dir.exists():
            return

        for path in sorted(work_dir.rglob("*"), key=lambda p: len(p.parts), reverse=True):
            try:
                if path.is_dir() and not path.is_symlink():
                    path.rmdir()
                else:
                    path.unlink()
            except OSError as e:
                _cleanup_warning(f"Could not remove temporary file {path}: {e}")

        try:
            work_dir.rmdir()
        except OSError as e:
            _cleanup_warning(f"Could not remove working directory {work_dir}: {e}")
            return
        logger.debug(f"Removed working directory {work_dir}")


def _cleanup_warning(message: str) -> None:
    logger.warning(message)
    warnings.warn(message, CleanupWarning, stacklevel=3)
