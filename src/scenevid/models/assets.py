"""Per-scene image and audio asset models."""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


class ImageAsset(BaseModel):
    """Still image produced for a scene."""

    scene_id: int = Field(..., alias="sceneId", description="Scene the image belongs to")
    file_path: Optional[Path] = Field(None, alias="path", description="Path to the image file")

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True


class AudioAsset(BaseModel):
    """Narration clip produced for a scene.

    A silent asset and an asset without a path both mean "no narration".
    """

    scene_id: int = Field(..., alias="sceneId", description="Scene the audio belongs to")
    file_path: Optional[Path] = Field(None, alias="path", description="Path to the audio file")
    silent: bool = Field(default=False, description="Narration synthesis produced nothing")

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True

    @property
    def has_narration(self) -> bool:
        return not self.silent and self.file_path is not None


class AssetManifest(BaseModel):
    """Image and audio assets for one script."""

    images: List[ImageAsset] = Field(default_factory=list)
    audio: List[AudioAsset] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: Path) -> "AssetManifest":
        """Load assets from YAML file.

        Relative file paths are resolved against the YAML file's directory.
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        manifest = cls(**data)
        base = Path(path).parent
        return cls(
            images=[
                asset.model_copy(update={"file_path": _anchor(asset.file_path, base)})
                for asset in manifest.images
            ],
            audio=[
                asset.model_copy(update={"file_path": _anchor(asset.file_path, base)})
                for asset in manifest.audio
            ],
        )

    def to_yaml(self, path: Path) -> None:
        """Save assets to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def _anchor(file_path: Optional[Path], base: Path) -> Optional[Path]:
    if file_path is None or file_path.is_absolute():
        return file_path
    return base / file_path
