"""Job items — trimmed source clips assembled into one encode output.

One job item is built per project descriptor: the visual track's shots
become an ordered list of source clips, each trimmed to its mark-in and
mark-out. Output shaping (resize mode, preset) is applied afterwards.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .paths import resolve_video_path
from .preset import Preset, load_preset
from .project import GenericMetadata, OutputMetadata, Shot

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "{Default Extension}"


class ResizeMode(Enum):
    STRETCH = "Stretch"
    LETTERBOX = "Letterbox"


@dataclass
class SourceClip:
    path: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class EncodeJobItem:
    output_name: str
    clips: list[SourceClip] = field(default_factory=list)
    resize_mode: ResizeMode = ResizeMode.LETTERBOX
    preset: Preset | None = None
    preset_path: str | None = None

    @property
    def primary(self) -> SourceClip:
        return self.clips[0]

    @property
    def duration(self) -> float:
        """Total output duration in seconds (sum of clip windows)."""
        return sum(c.duration for c in self.clips)

    def to_dict(self) -> dict:
        return {
            "output_name": self.output_name,
            "resize_mode": self.resize_mode.value,
            "preset": self.preset_path,
            "clips": [
                {"path": c.path, "start": c.start, "end": c.end}
                for c in self.clips
            ],
        }


def new_output_name() -> str:
    """Fresh unique output name; the engine resolves the extension."""
    return f"{uuid.uuid4()}.{DEFAULT_EXTENSION}"


def clip_from_shot(shot: Shot, input_dir: str | Path) -> SourceClip:
    """Resolve the shot's media and trim it to [mark_in, mark_out).

    Missing marks default to 0.0. A missing mark-out therefore yields an
    empty window; it is kept as is and only warned about.
    """
    logger.info("Adding shot: %s", shot.title)
    path = resolve_video_path(shot, input_dir)

    anchor = shot.source_anchor
    start = float(anchor.mark_in or 0.0)
    end = float(anchor.mark_out or 0.0)
    if anchor.mark_out is None:
        logger.warning("Shot '%s' has no mark_out; end time defaults to 0.0", shot.title)

    logger.info("Start Time: %.3fs", start)
    logger.info("End Time: %.3fs", end)
    return SourceClip(path=path, start=start, end=end)


def assemble_job_item(shots: list[Shot], input_dir: str | Path) -> EncodeJobItem:
    """Build one job item from the ordered shots of a visual track.

    The first shot is the primary clip; every following shot appends a
    clip in track order.

    Raises:
        ValueError: If shots is empty.
    """
    if not shots:
        raise ValueError("No shots to assemble")

    logger.info("Adding %d shot(s)", len(shots))
    item = EncodeJobItem(output_name=new_output_name())
    for shot in shots:
        item.clips.append(clip_from_shot(shot, input_dir))
    return item


def apply_preset(item: EncodeJobItem, preset_path: str) -> None:
    """Load the preset file and attach it to the item.

    Raises:
        PresetError: Missing or invalid preset (not handled here).
    """
    logger.info("Applying preset")
    item.preset = load_preset(preset_path)
    item.preset_path = preset_path


def configure_output(
    item: EncodeJobItem,
    metadata: GenericMetadata | OutputMetadata | None,
    preset_path: str | None = None,
) -> EncodeJobItem:
    """Apply resize mode from output metadata and the optional preset.

    Only "Stretch" and "Letterbox" change the resize mode; other values
    leave the item's current mode untouched.
    """
    if isinstance(metadata, OutputMetadata):
        logger.info("Applying output metadata")
        mode = metadata.settings.resize_mode
        if mode:
            for candidate in ResizeMode:
                if candidate.value == mode:
                    item.resize_mode = candidate
                    break
            else:
                logger.debug("Ignoring unknown resize mode '%s'", mode)

    if preset_path:
        apply_preset(item, preset_path)
    return item
