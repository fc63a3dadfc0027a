"""Encode engine — runs assembled job items through ffmpeg.

The pipeline only depends on the EncodeEngine protocol. FFmpegEncodeEngine
is the bundled implementation: one ffmpeg process per pass per item, all
trimmed clips fed as separate inputs and joined by the concat filter.

Filter graph per item (N clips):
  [i:v] scale/pad to the preset frame size (if any), setsar=1 -> [v{i}]
  [i:a] asetpts, aformat -> [a{i}]        (when the preset keeps audio)
  anullsrc, atrim -> [a{i}]               (same, for a clip without audio)
  [v0][a0][v1][a1]... concat=n=N -> [vout][aout]

Two-pass presets run pass 1 to the null muxer (video only) and pass 2 to
the real output, sharing a pass log in the engine's temp directory.
"""

import logging
import math
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Protocol

import imageio_ffmpeg

from .errors import EncodeExecutionFailure, JobItemRejected
from .job import DEFAULT_EXTENSION, EncodeJobItem, ResizeMode
from .paths import SEGMENTED_DESCRIPTOR_EXT
from .preset import Preset
from .progress import EncodeProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[EncodeProgress], object]

DEFAULT_PRESET = Preset(name="default")

AUDIO_FORMAT = "sample_rates=48000:channel_layouts=stereo"

_AUDIO_STREAM_RE = re.compile(r"^\s*Stream #\S+.*: Audio:", re.MULTILINE)


class EncodeEngine(Protocol):
    def add_item(self, item: EncodeJobItem) -> None:
        ...

    def encode(self, on_progress: ProgressCallback | None = None) -> None:
        ...

    def close(self) -> None:
        ...


def _scale_filter(preset: Preset, mode: ResizeMode) -> str:
    """Per-input video filter chain for the preset frame size."""
    if not preset.has_frame_size:
        return "setsar=1"
    w, h = preset.width, preset.height
    if mode is ResizeMode.STRETCH:
        return f"scale={w}:{h},setsar=1"
    return (
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,setsar=1"
    )


def build_filter_graph(
    item: EncodeJobItem,
    preset: Preset,
    with_audio: bool,
    silent: frozenset[int] = frozenset(),
) -> str:
    """Build the scale + concat filter graph for an item's clips.

    Clips whose index is in silent have no audio stream; a generated
    silence of the clip's length takes their place in the concat.
    """
    scale = _scale_filter(preset, item.resize_mode)
    parts = []
    concat_in = ""
    for i, clip in enumerate(item.clips):
        parts.append(f"[{i}:v]{scale}[v{i}]")
        concat_in += f"[v{i}]"
        if with_audio:
            if i in silent:
                parts.append(
                    f"anullsrc=r=48000:cl=stereo,atrim=duration={clip.duration:.3f},"
                    f"aformat={AUDIO_FORMAT}[a{i}]"
                )
            else:
                parts.append(f"[{i}:a]asetpts=PTS-STARTPTS,aformat={AUDIO_FORMAT}[a{i}]")
            concat_in += f"[a{i}]"

    n = len(item.clips)
    if with_audio:
        parts.append(f"{concat_in}concat=n={n}:v=1:a=1[vout][aout]")
    else:
        parts.append(f"{concat_in}concat=n={n}:v=1:a=0[vout]")
    return ";".join(parts)


def _video_codec_args(preset: Preset) -> list[str]:
    args = ["-c:v", preset.video_codec]
    if preset.video_bitrate is not None:
        args += ["-b:v", preset.video_bitrate]
    else:
        args += ["-crf", str(preset.crf)]
    args += ["-pix_fmt", preset.pix_fmt]
    if preset.fps is not None:
        args += ["-r", str(preset.fps)]
    return args


def _audio_codec_args(preset: Preset) -> list[str]:
    args = ["-c:a", preset.audio_codec]
    if preset.audio_bitrate is not None:
        args += ["-b:a", preset.audio_bitrate]
    return args


def _parse_out_time(line: str) -> float | None:
    """Seconds from an ffmpeg -progress 'out_time_us=' / 'out_time_ms=' line."""
    key, _, value = line.partition("=")
    if key not in ("out_time_us", "out_time_ms"):
        return None
    try:
        # Both keys carry microseconds.
        return int(value) / 1_000_000
    except ValueError:
        return None


class FFmpegEncodeEngine:
    """Encode engine backed by the ffmpeg binary from imageio-ffmpeg."""

    def __init__(self, output_dir: str | Path, ffmpeg: str | None = None):
        self.output_dir = Path(output_dir)
        self.ffmpeg = ffmpeg or imageio_ffmpeg.get_ffmpeg_exe()
        self.items: list[EncodeJobItem] = []
        self._work_dir: str | None = None
        self._has_audio: dict[str, bool] = {}

    # ── Item intake ───────────────────────────────────────────────

    def has_audio(self, path: str) -> bool:
        """Whether the media file has an audio stream (cached per path).

        imageio-ffmpeg bundles only the ffmpeg binary, so this reads the
        stream listing ffmpeg prints for an input-only invocation.
        """
        if path not in self._has_audio:
            result = subprocess.run(
                [self.ffmpeg, "-hide_banner", "-i", path],
                capture_output=True, text=True,
            )
            self._has_audio[path] = bool(_AUDIO_STREAM_RE.search(result.stderr))
        return self._has_audio[path]

    def add_item(self, item: EncodeJobItem) -> None:
        """Queue an item for encoding.

        Raises:
            JobItemRejected: Empty item, duplicate output name, missing or
                unplayable source, an empty or non-finite clip window, or
                a source that cannot be inspected.
        """
        name = item.output_name
        if not item.clips:
            raise JobItemRejected(name, "item has no source clips")
        if any(existing.output_name == name for existing in self.items):
            raise JobItemRejected(name, "duplicate output name")
        for clip in item.clips:
            if clip.path.endswith(SEGMENTED_DESCRIPTOR_EXT):
                raise JobItemRejected(name, f"unsupported source {clip.path}")
            if not Path(clip.path).is_file():
                raise JobItemRejected(name, f"source not found: {clip.path}")
            if not (math.isfinite(clip.start) and math.isfinite(clip.end)):
                raise JobItemRejected(
                    name,
                    f"clip {clip.path}: start ({clip.start}) and end ({clip.end}) must be finite",
                )
            if clip.end <= clip.start:
                raise JobItemRejected(
                    name,
                    f"clip {clip.path}: end ({clip.end}) must be > start ({clip.start})",
                )

        if (item.preset or DEFAULT_PRESET).audio:
            for clip in item.clips:
                try:
                    if not self.has_audio(clip.path):
                        logger.info("No audio stream in %s, padding with silence", clip.path)
                except OSError as exc:
                    raise JobItemRejected(name, f"cannot inspect {clip.path}: {exc}") from exc
        self.items.append(item)

    # ── Command building ──────────────────────────────────────────

    def output_path(self, item: EncodeJobItem) -> Path:
        preset = item.preset or DEFAULT_PRESET
        return self.output_dir / item.output_name.replace(DEFAULT_EXTENSION, preset.container)

    def _passlog(self, item: EncodeJobItem) -> str:
        if self._work_dir is None:
            self._work_dir = tempfile.mkdtemp(prefix="shotencode-")
        return os.path.join(self._work_dir, self.output_path(item).stem)

    def build_command(
        self,
        item: EncodeJobItem,
        pass_number: int = 1,
        total_passes: int = 1,
        passlog: str | None = None,
    ) -> list[str]:
        """Assemble the ffmpeg argv for one pass of one item."""
        preset = item.preset or DEFAULT_PRESET
        analysis_pass = total_passes > 1 and pass_number < total_passes
        with_audio = preset.audio and not analysis_pass

        silent = frozenset(
            i for i, clip in enumerate(item.clips)
            if not self._has_audio.get(clip.path, True)
        )
        inputs = []
        for clip in item.clips:
            inputs += ["-ss", f"{clip.start:.3f}", "-to", f"{clip.end:.3f}", "-i", clip.path]

        cmd = [
            self.ffmpeg, "-y", "-nostats", "-loglevel", "error",
            *inputs,
            "-filter_complex", build_filter_graph(item, preset, with_audio, silent),
            "-map", "[vout]",
        ]
        if with_audio:
            cmd += ["-map", "[aout]"]
        cmd += _video_codec_args(preset)

        if total_passes > 1:
            cmd += ["-pass", str(pass_number), "-passlogfile", passlog or self._passlog(item)]

        cmd += ["-progress", "pipe:1"]
        if analysis_pass:
            cmd += ["-an", "-f", "null", os.devnull]
        else:
            cmd += _audio_codec_args(preset) if with_audio else ["-an"]
            cmd.append(str(self.output_path(item)))
        return cmd

    # ── Execution ─────────────────────────────────────────────────

    def _run_pass(
        self,
        item: EncodeJobItem,
        pass_number: int,
        total_passes: int,
        on_progress: ProgressCallback | None,
    ) -> None:
        cmd = self.build_command(item, pass_number, total_passes)
        name = self.output_path(item).name
        logger.debug("Running: %s", " ".join(cmd))

        duration = item.duration

        def _emit(percent: float) -> None:
            if on_progress is not None:
                on_progress(EncodeProgress(pass_number, total_passes, percent, name))

        # stderr goes to a file so it never blocks while stdout is read.
        with tempfile.TemporaryFile(mode="w+") as errfile:
            try:
                proc = subprocess.Popen(
                    cmd, stdout=subprocess.PIPE, stderr=errfile, text=True,
                )
            except OSError as exc:
                raise EncodeExecutionFailure(name, f"cannot start ffmpeg: {exc}") from exc

            with proc:
                for line in proc.stdout:
                    seconds = _parse_out_time(line.strip())
                    if seconds is not None and duration > 0:
                        _emit(min(100.0, seconds / duration * 100.0))
                returncode = proc.wait()
            errfile.seek(0)
            stderr = errfile.read()

        if returncode != 0:
            cause = subprocess.CalledProcessError(returncode, cmd, stderr=stderr)
            tail = stderr.strip().splitlines()[-5:]
            raise EncodeExecutionFailure(
                name, f"ffmpeg exited with {returncode}: {' | '.join(tail)}",
            ) from cause
        _emit(100.0)

    def encode(self, on_progress: ProgressCallback | None = None) -> None:
        """Encode all queued items in order.

        Raises:
            EncodeExecutionFailure: First failing item; the rest of the
                batch is not attempted.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        for item in self.items:
            preset = item.preset or DEFAULT_PRESET
            logger.info(
                "Encoding %s (%d clip(s), %.1fs)",
                self.output_path(item).name, len(item.clips), item.duration,
            )
            for pass_number in range(1, preset.passes + 1):
                self._run_pass(item, pass_number, preset.passes, on_progress)

    def close(self) -> None:
        if self._work_dir is not None:
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self._work_dir = None
