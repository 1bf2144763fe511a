"""Shared fixtures and fakes."""

import asyncio
import os
import stat
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import pytest

from scenevid.editor import SegmentConcatenator, SegmentEncoder
from scenevid.errors import ConcatenationFailure, EncodingFailure
from scenevid.models import AudioAsset, ImageAsset, Scene, Script

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as ffmpeg")


def make_script(durations: Sequence[float], title: str = "Test script") -> Script:
    scenes = [
        Scene(id=i + 1, duration=duration, narration=f"Narration {i + 1}")
        for i, duration in enumerate(durations)
    ]
    return Script(title=title, scenes=scenes, total_duration=sum(durations))


def make_images(directory: Path, scene_ids: Iterable[int]) -> List[ImageAsset]:
    directory.mkdir(parents=True, exist_ok=True)
    assets = []
    for scene_id in scene_ids:
        path = directory / f"scene_{scene_id}.png"
        path.write_bytes(b"\x89PNG fake image")
        assets.append(ImageAsset(scene_id=scene_id, file_path=path))
    return assets


def make_audio(directory: Path, scene_ids: Iterable[int]) -> List[AudioAsset]:
    directory.mkdir(parents=True, exist_ok=True)
    assets = []
    for scene_id in scene_ids:
        path = directory / f"scene_{scene_id}.mp3"
        path.write_bytes(b"ID3 fake audio")
        assets.append(AudioAsset(scene_id=scene_id, file_path=path))
    return assets


def write_fake_ffmpeg(directory: Path, body: str) -> str:
    """Write an executable shell script that stands in for ffmpeg.

    ``$out`` holds the last command line argument (the output path).
    """
    script = directory / "fake-ffmpeg"
    script.write_text("#!/bin/sh\nfor out; do :; done\n" + body + "\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


class FakeEncoder(SegmentEncoder):
    """Writes a small file naming the scene instead of running ffmpeg."""

    def __init__(
        self,
        fail_ids: Iterable[int] = (),
        delays: Optional[Dict[int, float]] = None,
        flaky_ids: Iterable[int] = (),
    ) -> None:
        self.fail_ids = set(fail_ids)
        self.flaky_ids = set(flaky_ids)
        self.delays = delays or {}
        self.calls: List[tuple] = []
        self.completed: List[int] = []
        self.started: List[float] = []

    async def encode_segment(self, scene, image_path, audio_path, output_path):
        self.calls.append((scene.id, image_path, audio_path))
        self.started.append(asyncio.get_running_loop().time())
        output_path.write_bytes(b"partial")
        await asyncio.sleep(self.delays.get(scene.id, 0))
        if scene.id in self.fail_ids:
            output_path.unlink()
            raise EncodingFailure("simulated encoder crash", scene_id=scene.id)
        if scene.id in self.flaky_ids:
            self.flaky_ids.discard(scene.id)
            output_path.unlink()
            raise EncodingFailure("transient failure", scene_id=scene.id)
        output_path.write_bytes(f"scene-{scene.id}".encode())
        self.completed.append(scene.id)
        return output_path


class FakeConcatenator(SegmentConcatenator):
    """Joins segment contents with '|' and records what it was given."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.received: List[Path] = []
        self.contents: List[str] = []

    async def concatenate(self, segment_paths, output_path, work_dir):
        if not segment_paths:
            raise ConcatenationFailure("No segments to concatenate")
        self.received = list(segment_paths)
        self.contents = [Path(p).read_text() for p in segment_paths]
        if self.fail:
            raise ConcatenationFailure("stream layout mismatch")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text("|".join(self.contents))
        return output_path


def dir_is_empty(path: Path) -> bool:
    return not path.exists() or not any(path.iterdir())


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    return tmp_path / "temp"


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SCENEVID_"):
            monkeypatch.delenv(name, raising=False)
