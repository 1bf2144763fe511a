"""Pair scenes with their image and narration assets."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TypeVar

from ..models import AudioAsset, ImageAsset, Scene

logger = logging.getLogger(__name__)

AssetT = TypeVar("AssetT", ImageAsset, AudioAsset)


@dataclass(frozen=True)
class ResolvedAssets:
    """Assets matched to one scene.

    ``image_path`` is None when the scene has no usable image.
    ``audio_path`` is None when the scene should be rendered silent.
    """

    scene: Scene
    image_path: Optional[Path]
    audio_path: Optional[Path]

    @property
    def has_image(self) -> bool:
        return self.image_path is not None

    @property
    def is_silent(self) -> bool:
        return self.audio_path is None


def _index_by_scene(assets: Iterable[AssetT]) -> Dict[int, List[AssetT]]:
    index: Dict[int, List[AssetT]] = {}
    for asset in assets:
        index.setdefault(asset.scene_id, []).append(asset)
    return index


class AssetResolver:
    """Look up the image and narration for each scene by scene id.

    When several assets share a scene id the first one wins and a warning
    is logged; duplicates are a data problem upstream, not a render error.
    """

    def __init__(
        self,
        images: Iterable[ImageAsset],
        audio: Iterable[AudioAsset] = (),
    ) -> None:
        self._images = _index_by_scene(images)
        self._audio = _index_by_scene(audio)

    def _first(self, index: Dict[int, List[AssetT]], scene_id: int, kind: str) -> Optional[AssetT]:
        matches = index.get(scene_id)
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                f"Data integrity: {len(matches)} {kind} assets for scene {scene_id}, using the first"
            )
        return matches[0]

    def image_for(self, scene: Scene) -> Optional[Path]:
        asset = self._first(self._images, scene.id, "image")
        if asset is None:
            return None
        return asset.file_path

    def audio_for(self, scene: Scene) -> Optional[Path]:
        asset = self._first(self._audio, scene.id, "audio")
        if asset is None or not asset.has_narration:
            return None
        return asset.file_path

    def resolve(self, scene: Scene) -> ResolvedAssets:
        """Match a scene to its assets.

        Args:
            scene: Scene to resolve.

        Returns:
            ResolvedAssets with the image path (or None) and the narration
            path (or None for silence).
        """
        return ResolvedAssets(
            scene=scene,
            image_path=self.image_for(scene),
            audio_path=self.audio_for(scene),
        )
