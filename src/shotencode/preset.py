"""Preset loader — named bundles of encode settings.

Preset schema:
  name: h264-720p
  container: mp4            # replaces "{Default Extension}" in output names
  passes: 1                 # 1 or 2; two-pass needs video.bitrate
  video:
    codec: libx264
    crf: 20                 # or bitrate: "2500k"
    pix_fmt: yuv420p
    width: 1280             # optional, both or neither
    height: 720
    fps: 30                 # optional
  audio:                    # omit for aac defaults, false to drop audio
    codec: aac
    bitrate: 128k
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import PresetError


VALID_PASSES = {1, 2}


@dataclass
class Preset:
    name: str
    container: str = "mp4"
    passes: int = 1
    video_codec: str = "libx264"
    crf: int | None = 20
    video_bitrate: str | None = None
    pix_fmt: str = "yuv420p"
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    audio: bool = True
    audio_codec: str = "aac"
    audio_bitrate: str | None = None

    @property
    def has_frame_size(self) -> bool:
        return self.width is not None and self.height is not None


def _positive_int(value, field_name: str, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise PresetError(path, f"{field_name} must be a positive integer, got {value!r}")
    return value


def _parse_preset(raw, path: str) -> Preset:
    if not isinstance(raw, dict):
        raise PresetError(path, "preset must be a YAML mapping")

    passes = raw.get("passes", 1)
    if passes not in VALID_PASSES:
        raise PresetError(path, f"invalid passes {passes!r}. Valid: {sorted(VALID_PASSES)}")

    video = raw.get("video") or {}
    if not isinstance(video, dict):
        raise PresetError(path, "video must be a mapping")

    video_bitrate = video.get("bitrate")
    crf = video.get("crf")
    if crf is None and video_bitrate is None:
        crf = 20
    if crf is not None and video_bitrate is not None:
        raise PresetError(path, "video.crf and video.bitrate are mutually exclusive")
    if passes == 2 and video_bitrate is None:
        raise PresetError(path, "two-pass encoding requires video.bitrate")
    if crf is not None and (isinstance(crf, bool) or not isinstance(crf, int) or crf < 0):
        raise PresetError(path, f"video.crf must be an integer >= 0, got {crf!r}")

    width, height = video.get("width"), video.get("height")
    if (width is None) != (height is None):
        raise PresetError(path, "video.width and video.height must be set together")
    if width is not None:
        width = _positive_int(width, "video.width", path)
        height = _positive_int(height, "video.height", path)

    fps = video.get("fps")
    if fps is not None and (isinstance(fps, bool) or not isinstance(fps, (int, float)) or fps <= 0):
        raise PresetError(path, f"video.fps must be > 0, got {fps!r}")

    audio = raw.get("audio", {})
    if audio is False:
        audio_enabled, audio = False, {}
    elif audio is None or isinstance(audio, dict):
        audio_enabled, audio = True, audio or {}
    else:
        raise PresetError(path, "audio must be a mapping or false")

    return Preset(
        name=str(raw.get("name", Path(path).stem)),
        container=str(raw.get("container", "mp4")).lstrip("."),
        passes=passes,
        video_codec=str(video.get("codec", "libx264")),
        crf=crf,
        video_bitrate=None if video_bitrate is None else str(video_bitrate),
        pix_fmt=str(video.get("pix_fmt", "yuv420p")),
        width=width,
        height=height,
        fps=fps,
        audio=audio_enabled,
        audio_codec=str(audio.get("codec", "aac")),
        audio_bitrate=None if audio.get("bitrate") is None else str(audio["bitrate"]),
    )


def load_preset(path: str | Path) -> Preset:
    """Load and validate a preset file.

    Raises:
        PresetError: Missing file, YAML syntax error or invalid field.
            I/O and YAML errors are chained as __cause__.
    """
    path = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise PresetError(path, str(exc)) from exc
    return _parse_preset(raw, path)
