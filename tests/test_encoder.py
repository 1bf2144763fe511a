"""Tests for the ffmpeg segment encoder."""

import asyncio
from pathlib import Path

import pytest

from conftest import posix_only, write_fake_ffmpeg
from scenevid.config import EncodingProfile
from scenevid.editor import FfmpegSegmentEncoder
from scenevid.errors import EncodingFailure, MissingSceneAsset
from scenevid.models import Scene


def option(args, name):
    return args[args.index(name) + 1]


def filter_graph(args):
    return option(args, "-filter_complex")


@pytest.fixture
def scene():
    return Scene(id=4, duration=30, narration="Hello")


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "scene.png"
    path.write_bytes(b"\x89PNG fake")
    return path


def test_image_is_scaled_padded_and_held(scene, image, tmp_path):
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="ffmpeg")
    args = encoder.build_command(scene, image, None, tmp_path / "out.mp4")

    graph = filter_graph(args)
    assert "scale=1920:1080:force_original_aspect_ratio=decrease" in graph
    assert "pad=1920:1080:(ow-iw)/2:(oh-ih)/2" in graph
    assert "setsar=1" in graph
    assert option(args, "-loop") == "1"
    assert args[0] == "ffmpeg"
    assert args[-1] == str(tmp_path / "out.mp4")


def test_silence_is_synthesized_without_narration(scene, image, tmp_path):
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="ffmpeg")
    args = encoder.build_command(scene, image, None, tmp_path / "out.mp4")

    assert "anullsrc=channel_layout=stereo:sample_rate=44100" in args
    assert "lavfi" in args
    assert "apad" not in filter_graph(args)
    assert "-shortest" in args


def test_narration_is_padded_to_scene_length(scene, image, tmp_path):
    narration = tmp_path / "voice.mp3"
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="ffmpeg")
    args = encoder.build_command(scene, image, narration, tmp_path / "out.mp4")

    assert str(narration) in args
    assert "apad" in filter_graph(args)
    assert not any("anullsrc" in arg for arg in args)
    assert "-shortest" in args
    assert "30.0" in args


def test_voiced_and_silent_segments_share_encoding(scene, image, tmp_path):
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="ffmpeg")
    silent = encoder.build_command(scene, image, None, tmp_path / "a.mp4")
    voiced = encoder.build_command(scene, image, tmp_path / "voice.mp3", tmp_path / "b.mp4")

    for name, expected in [
        ("-vcodec", "libx264"),
        ("-pix_fmt", "yuv420p"),
        ("-r", "30"),
        ("-acodec", "aac"),
        ("-b:a", "128k"),
        ("-ar", "44100"),
        ("-ac", "2"),
    ]:
        assert option(silent, name) == expected
        assert option(voiced, name) == expected


def test_custom_profile_dimensions(scene, image, tmp_path):
    profile = EncodingProfile(width=1280, height=720, channels=1)
    encoder = FfmpegSegmentEncoder(profile=profile, ffmpeg_binary="ffmpeg")
    args = encoder.build_command(scene, image, None, tmp_path / "out.mp4")

    assert "scale=1280:720:force_original_aspect_ratio=decrease" in filter_graph(args)
    assert "anullsrc=channel_layout=mono:sample_rate=44100" in args
    assert encoder.profile is profile


def test_missing_image_file(scene, tmp_path):
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="ffmpeg")

    with pytest.raises(MissingSceneAsset) as excinfo:
        asyncio.run(encoder.encode_segment(scene, tmp_path / "nope.png", None, tmp_path / "out.mp4"))

    assert excinfo.value.scene_id == 4


def test_unstartable_ffmpeg(scene, image, tmp_path):
    output = tmp_path / "out.mp4"
    encoder = FfmpegSegmentEncoder(ffmpeg_binary="/nonexistent/ffmpeg")

    with pytest.raises(EncodingFailure):
        asyncio.run(encoder.encode_segment(scene, image, None, output))

    assert not output.exists()


@posix_only
def test_nonzero_exit_removes_partial_output(scene, image, tmp_path):
    binary = write_fake_ffmpeg(tmp_path, 'printf partial > "$out"\necho "codec error" >&2\nexit 1')
    output = tmp_path / "segments" / "out.mp4"
    encoder = FfmpegSegmentEncoder(ffmpeg_binary=binary)

    with pytest.raises(EncodingFailure) as excinfo:
        asyncio.run(encoder.encode_segment(scene, image, None, output))

    assert "codec error" in str(excinfo.value)
    assert not output.exists()


@posix_only
def test_empty_output_is_a_failure(scene, image, tmp_path):
    binary = write_fake_ffmpeg(tmp_path, ': > "$out"')
    output = tmp_path / "out.mp4"
    encoder = FfmpegSegmentEncoder(ffmpeg_binary=binary)

    with pytest.raises(EncodingFailure):
        asyncio.run(encoder.encode_segment(scene, image, None, output))

    assert not output.exists()


@posix_only
def test_successful_encode(scene, image, tmp_path):
    binary = write_fake_ffmpeg(tmp_path, 'echo "$@" > "$(dirname "$0")/args.txt"\nprintf video > "$out"')
    output = tmp_path / "segments" / "out.mp4"
    encoder = FfmpegSegmentEncoder(ffmpeg_binary=binary, verify=False)

    result = asyncio.run(encoder.encode_segment(scene, image, None, output))

    assert result == output
    assert output.read_text() == "video"
    assert image.exists()
    assert "anullsrc" in (tmp_path / "args.txt").read_text()


@posix_only
def test_empty_narration_falls_back_to_silence(scene, image, tmp_path):
    narration = tmp_path / "voice.mp3"
    narration.write_bytes(b"")
    binary = write_fake_ffmpeg(tmp_path, 'echo "$@" > "$(dirname "$0")/args.txt"\nprintf video > "$out"')
    encoder = FfmpegSegmentEncoder(ffmpeg_binary=binary, verify=False)

    asyncio.run(encoder.encode_segment(scene, image, narration, tmp_path / "out.mp4"))

    recorded = (tmp_path / "args.txt").read_text()
    assert "anullsrc" in recorded
    assert str(narration) not in recorded
    assert narration.exists()
