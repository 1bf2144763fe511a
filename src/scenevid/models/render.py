"""Render run state and results."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class RenderState(str, Enum):
    """Render pipeline state."""
    INIT = "init"
    RESOLVING = "resolving"
    ENCODING = "encoding"
    CONCATENATING = "concatenating"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why a scene did not produce a segment."""
    MISSING_IMAGE = "missing_image"
    ENCODING_FAILED = "encoding_failed"


@dataclass(frozen=True)
class Segment:
    """An encoded clip for one scene, local to a single render run."""

    scene_index: int
    scene_id: int
    file_path: Path
    duration: float


class SceneSkip(BaseModel):
    """A scene left out of the rendered video."""

    scene_id: int
    scene_index: int
    reason: SkipReason
    detail: str = ""


class OutputArtifact(BaseModel):
    """The rendered video handed back to the caller."""

    id: str = Field(..., description="Run identifier")
    file_path: Path = Field(..., description="Rendered video path")
    size_bytes: int = Field(..., description="File size in bytes", ge=0)
    total_duration: float = Field(..., description="Sum of rendered scene durations")
    segment_count: int = Field(..., description="Number of scenes rendered", ge=1)
    skipped: List[SceneSkip] = Field(default_factory=list, description="Scenes left out")
    thumbnail_path: Optional[Path] = Field(None, description="JPEG thumbnail, when requested")


@dataclass
class RenderProgress:
    """Coarse progress of a render run."""

    run_id: str
    state: RenderState
    total_scenes: int
    encoded: int = 0
    skipped: int = 0
    failed_stage: Optional[RenderState] = None

    @property
    def settled(self) -> int:
        return self.encoded + self.skipped
