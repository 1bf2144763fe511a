"""Script data model."""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from .scene import Scene


class Script(BaseModel):
    """A finalized script: scenes in playback order."""

    title: str = Field(default="", description="Script title")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in playback order")
    total_duration: Optional[float] = Field(
        default=None,
        alias="totalDuration",
        description="Sum of scene durations as computed by the script author"
    )

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True

    @model_validator(mode="after")
    def _check_scenes(self) -> "Script":
        seen = set()
        for scene in self.scenes:
            if scene.id in seen:
                raise ValueError(f"Duplicate scene id: {scene.id}")
            seen.add(scene.id)
        return self

    @property
    def declared_duration(self) -> float:
        """Duration declared by the script author, or the scene sum if none was given.

        This is not reconciled with what was actually rendered; use the
        output artifact's duration for that.
        """
        if self.total_duration is not None:
            return self.total_duration
        return sum(scene.duration for scene in self.scenes)

    @classmethod
    def from_yaml(cls, path: Path) -> "Script":
        """Load script from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    def to_yaml(self, path: Path) -> None:
        """Save script to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
