"""Shared test fixtures for shotencode tests."""

import subprocess

import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second test video (320x240, 10fps) with audio using ffmpeg.

    Shared across test_engine.py and test_pipeline.py.
    """
    media = tmp_path / "media"
    media.mkdir(exist_ok=True)
    out = media / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=320x240:d=5:r=10",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def input_dir(tmp_path):
    """Empty media input directory."""
    d = tmp_path / "input"
    d.mkdir()
    return d


@pytest.fixture
def video_only_source(tmp_path):
    """Create a 3-second test video (320x240, 10fps) with no audio stream."""
    media = tmp_path / "media"
    media.mkdir(exist_ok=True)
    out = media / "silent.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=red:s=320x240:d=3:r=10",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out
