"""Scene data model."""

from enum import Enum

from pydantic import BaseModel, Field

DEFAULT_SCENE_DURATION = 30.0


class VisualType(str, Enum):
    """Kind of visual shown for a scene."""
    TITLE = "title"
    DIAGRAM = "diagram"
    CONCEPT = "concept"
    ANIMATION = "animation"
    SUMMARY = "summary"


class Scene(BaseModel):
    """A single narrated scene of a script."""

    id: int = Field(..., description="Scene identifier, unique within a script")
    duration: float = Field(
        default=DEFAULT_SCENE_DURATION,
        description="Scene duration in seconds",
        gt=0
    )
    narration: str = Field(default="", description="Voice-over text")
    visual_description: str = Field(
        default="",
        alias="visualDescription",
        description="What the still image shows"
    )
    visual_type: VisualType = Field(
        default=VisualType.CONCEPT,
        alias="visualType",
        description="Kind of visual"
    )

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True
