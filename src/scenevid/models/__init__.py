"""Data models for the scene renderer."""

from .scene import Scene, VisualType
from .script import Script
from .assets import ImageAsset, AudioAsset, AssetManifest
from .render import (
    RenderState,
    SkipReason,
    Segment,
    SceneSkip,
    OutputArtifact,
    RenderProgress,
)

__all__ = [
    "Scene",
    "VisualType",
    "Script",
    "ImageAsset",
    "AudioAsset",
    "AssetManifest",
    "RenderState",
    "SkipReason",
    "Segment",
    "SceneSkip",
    "OutputArtifact",
    "RenderProgress",
]
