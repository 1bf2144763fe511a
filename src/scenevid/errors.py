"""Render error taxonomy."""

from typing import Optional


class RenderError(Exception):
    """Base class for errors raised while rendering a script.

    Carries the run identifier and the pipeline stage that failed so callers
    can log and surface the failure without parsing the message.
    """

    def __init__(
        self,
        message: str,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
        scene_id: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.run_id = run_id
        self.stage = stage
        self.scene_id = scene_id

    def with_context(
        self,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> "RenderError":
        """Fill in run context that was unknown where the error was raised."""
        if self.run_id is None:
            self.run_id = run_id
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        context = []
        if self.run_id:
            context.append(f"run={self.run_id}")
        if self.stage:
            context.append(f"stage={self.stage}")
        if self.scene_id is not None:
            context.append(f"scene={self.scene_id}")
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"


class InvalidScript(RenderError):
    """The script cannot be rendered at all (e.g. it has no scenes)."""


class MissingSceneAsset(RenderError):
    """A scene has no usable image; the scene is skipped."""


class EncodingFailure(RenderError):
    """A segment could not be encoded; the scene is skipped."""


class NoValidSegments(RenderError):
    """Every scene was skipped, so there is nothing to concatenate."""


class ConcatenationFailure(RenderError):
    """Segments existed but could not be joined into the output file."""


class RenderTimeout(RenderError):
    """The whole render exceeded its time budget."""


class CleanupWarning(UserWarning):
    """A temporary file or directory could not be removed."""
