"""CLI entry point for the scene renderer."""

import logging
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import config
from .editor import AssetResolver, get_audio_duration
from .errors import RenderError
from .models import AssetManifest, RenderProgress, RenderState, Script

app = typer.Typer(
    name="scenevid",
    help="Render narrated scene scripts into a single video",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"scenevid version {__version__}")
        raise typer.Exit()


def _load_script(path: Path) -> Script:
    try:
        return Script.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading script: {e}")
        raise typer.Exit(1)


def _load_assets(path: Optional[Path]) -> AssetManifest:
    if path is None:
        return AssetManifest()
    try:
        return AssetManifest.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading assets: {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Scene Renderer - Turn narrated scene scripts into videos."""
    pass


@app.command()
def status(
    script: Path = typer.Option(
        Path("script.yaml"),
        "--script",
        "-s",
        help="Path to script YAML file",
        exists=False,
        file_okay=True,
        dir_okay=False
    ),
    assets: Optional[Path] = typer.Option(
        None,
        "--assets",
        "-a",
        help="Path to assets YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    probe: bool = typer.Option(
        False,
        "--probe",
        "-p",
        help="Read narration files and compare their length to the scene"
    ),
) -> None:
    """Show a script and which scenes have their assets."""
    if not script.exists():
        typer.echo(f"❌ No script found at {script}")
        raise typer.Exit(1)

    loaded = _load_script(script)
    manifest = _load_assets(assets)
    resolver = AssetResolver(manifest.images, manifest.audio)

    typer.echo(f"📁 Script: {loaded.title or script.stem}")
    typer.echo(f"   Scenes: {len(loaded.scenes)}")
    typer.echo(f"   Declared duration: {loaded.declared_duration:.1f}s")

    renderable = 0.0
    typer.echo("\n📽️  Scenes:")
    for scene in loaded.scenes:
        resolved = resolver.resolve(scene)
        image_state = "OK" if resolved.has_image else "MISSING"
        audio_state = "SILENT" if resolved.is_silent else "OK"
        icon = "✅" if resolved.has_image else "⚠️ "
        if resolved.has_image:
            renderable += scene.duration
        typer.echo(
            f"   {icon} {scene.id}: {scene.duration}s [{scene.visual_type.value}] "
            f"image {image_state}, audio {audio_state}"
        )

        if probe and resolved.audio_path is not None:
            try:
                narration = get_audio_duration(resolved.audio_path)
            except Exception as e:
                typer.echo(f"      ⚠️  Cannot read narration: {e}")
                continue
            note = " (will be truncated)" if narration > scene.duration else ""
            typer.echo(f"      → narration {narration:.1f}s{note}")

    typer.echo(f"\n   Renderable duration: {renderable:.1f}s")


@app.command()
def render(
    script: Path = typer.Option(
        Path("script.yaml"),
        "--script",
        "-s",
        help="Path to script YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    assets: Path = typer.Option(
        Path("assets.yaml"),
        "--assets",
        "-a",
        help="Path to assets YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the rendered video"
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Maximum concurrent segment encodes",
        min=1,
        max=16
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds allowed for the whole render (0 disables)",
        min=0
    ),
    thumbnail: bool = typer.Option(
        False,
        "--thumbnail",
        help="Also save a JPEG thumbnail"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Render a script and its assets into one MP4 video."""
    from .pipeline import RenderPipeline

    setup_logging(verbose)
    typer.echo(f"🎬 Rendering {script}")

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    loaded = _load_script(script)
    manifest = _load_assets(assets)
    typer.echo(f"   Scenes: {len(loaded.scenes)}")
    typer.echo(f"   Images: {len(manifest.images)}")
    typer.echo(f"   Audio: {len(manifest.audio)}")

    def report(progress: RenderProgress) -> None:
        if progress.state == RenderState.ENCODING and progress.settled:
            typer.echo(f"   ⏳ {progress.settled}/{progress.total_scenes} scenes settled")

    pipeline = RenderPipeline(
        output_dir=output_dir,
        max_workers=workers,
        render_timeout=timeout,
        thumbnails=thumbnail or None,
    )

    try:
        artifact = pipeline.render_sync(loaded, manifest.images, manifest.audio, report)
    except RenderError as e:
        typer.echo(f"❌ Render failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n✅ Video rendered: {artifact.file_path}")
    typer.echo(f"   ID: {artifact.id}")
    typer.echo(f"   Duration: {artifact.total_duration:.1f}s")
    typer.echo(f"   Size: {artifact.size_bytes / (1024 * 1024):.2f} MB")
    typer.echo(f"   Segments: {artifact.segment_count}")
    if artifact.thumbnail_path:
        typer.echo(f"   Thumbnail: {artifact.thumbnail_path}")

    if artifact.skipped:
        typer.echo(f"\n⚠️  {len(artifact.skipped)} scene(s) skipped:")
        for skip in artifact.skipped:
            typer.echo(f"   - {skip.scene_id}: {skip.reason.value} {skip.detail}")


if __name__ == "__main__":
    app()
