"""Project descriptor loader — sequences, tracks and trimmed shots.

Parses the YAML project descriptor into a typed graph and selects the
visual track the pipeline encodes.

Project descriptor schema:
  title: "Demo"
  sequences:
    - tracks:
        - type: Visual              # matched case-insensitively
          shots:
            - title: Intro
              source:
                resources:
                  - ref: "http://media/intro.ism/manifest"
              source_anchor:
                mark_in: 5.0        # seconds, optional
                mark_out: 10.0      # seconds, optional
  metadata:                         # optional
    kind: output                    # "output" or "generic"
    settings:
      resize_mode: Stretch          # "Stretch", "Letterbox" or unset
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import DeserializationError

logger = logging.getLogger(__name__)

VISUAL_TRACK_TYPE = "VISUAL"


# ── Data model ─────────────────────────────────────────────────────

@dataclass
class Resource:
    ref: str


@dataclass
class ShotSource:
    resources: list[Resource] = field(default_factory=list)

    @property
    def primary_ref(self) -> str:
        return self.resources[0].ref


@dataclass
class SourceAnchor:
    mark_in: float | None = None
    mark_out: float | None = None


@dataclass
class Shot:
    title: str
    source: ShotSource
    source_anchor: SourceAnchor = field(default_factory=SourceAnchor)


@dataclass
class Track:
    track_type: str
    shots: list[Shot] = field(default_factory=list)


@dataclass
class Sequence:
    tracks: list[Track] = field(default_factory=list)


@dataclass
class OutputSettings:
    resize_mode: str | None = None


@dataclass
class GenericMetadata:
    kind: str = "generic"


@dataclass
class OutputMetadata:
    settings: OutputSettings = field(default_factory=OutputSettings)
    kind: str = "output"


@dataclass
class Project:
    title: str = ""
    sequences: list[Sequence] = field(default_factory=list)
    metadata: GenericMetadata | OutputMetadata | None = None


# ── Parsing ────────────────────────────────────────────────────────

def _as_mapping(node, what: str) -> dict:
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise TypeError(f"{what} must be a mapping, got {type(node).__name__}")
    return node


def _as_list(node, what: str) -> list:
    if node is None:
        return []
    if not isinstance(node, list):
        raise TypeError(f"{what} must be a list, got {type(node).__name__}")
    return node


def _optional_seconds(value, what: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError(f"{what} must be a number of seconds, got {value!r}")
    seconds = float(value)
    if not math.isfinite(seconds):
        raise ValueError(f"{what} must be a finite number of seconds, got {value!r}")
    if seconds < 0:
        raise ValueError(f"{what} must be >= 0, got {seconds}")
    return seconds


def _parse_shot(node, where: str) -> Shot:
    node = _as_mapping(node, where)
    source = _as_mapping(node.get("source"), f"{where}.source")
    resources = []
    for j, res in enumerate(_as_list(source.get("resources"), f"{where}.source.resources")):
        res = _as_mapping(res, f"{where}.source.resources[{j}]")
        if "ref" not in res:
            raise ValueError(f"{where}.source.resources[{j}]: missing required field 'ref'")
        resources.append(Resource(ref=str(res["ref"])))
    if not resources:
        raise ValueError(f"{where}: shot has no source resources")

    anchor = _as_mapping(node.get("source_anchor"), f"{where}.source_anchor")
    return Shot(
        title=str(node.get("title", "")),
        source=ShotSource(resources=resources),
        source_anchor=SourceAnchor(
            mark_in=_optional_seconds(anchor.get("mark_in"), f"{where}.mark_in"),
            mark_out=_optional_seconds(anchor.get("mark_out"), f"{where}.mark_out"),
        ),
    )


def _parse_metadata(node) -> GenericMetadata | OutputMetadata | None:
    if node is None:
        return None
    node = _as_mapping(node, "metadata")
    kind = str(node.get("kind", "generic")).lower()
    if kind == "generic":
        return GenericMetadata()
    if kind == "output":
        settings = _as_mapping(node.get("settings"), "metadata.settings")
        mode = settings.get("resize_mode")
        return OutputMetadata(
            settings=OutputSettings(resize_mode=None if mode is None else str(mode)),
        )
    raise ValueError(f"Unknown metadata kind: '{kind}'. Valid: ['generic', 'output']")


def _build_project(raw) -> Project:
    raw = _as_mapping(raw, "project")
    sequences = []
    for i, seq in enumerate(_as_list(raw.get("sequences"), "sequences")):
        seq = _as_mapping(seq, f"sequences[{i}]")
        tracks = []
        for k, trk in enumerate(_as_list(seq.get("tracks"), f"sequences[{i}].tracks")):
            where = f"sequences[{i}].tracks[{k}]"
            trk = _as_mapping(trk, where)
            if "type" not in trk:
                raise ValueError(f"{where}: missing required field 'type'")
            shots = [
                _parse_shot(shot, f"{where}.shots[{n}]")
                for n, shot in enumerate(_as_list(trk.get("shots"), f"{where}.shots"))
            ]
            tracks.append(Track(track_type=str(trk["type"]), shots=shots))
        sequences.append(Sequence(tracks=tracks))

    return Project(
        title=str(raw.get("title", "")),
        sequences=sequences,
        metadata=_parse_metadata(raw.get("metadata")),
    )


def deserialize_project(text: str, source: str | None = None) -> Project:
    """Parse project descriptor text into a Project graph.

    Args:
        text: YAML descriptor content.
        source: Where the text came from, used in messages only.

    Returns:
        The typed Project graph.

    Raises:
        DeserializationError: Malformed YAML or a node of the wrong shape.
            The original exception is chained as __cause__.
    """
    try:
        return _build_project(yaml.safe_load(text))
    except Exception as exc:
        logger.error("Exception", exc_info=exc)
        logger.error("%s: %s", type(exc).__name__, exc)
        raise DeserializationError(str(exc), source=source) from exc


def load_project(path: str | Path) -> Project:
    """Read a descriptor file (UTF-8) and deserialize it."""
    with open(path, encoding="utf-8") as f:
        text = f.read()
    return deserialize_project(text, source=str(path))


# ── Track selection ────────────────────────────────────────────────

def select_visual_track(project: Project) -> Track | None:
    """Return the first sequence's first visual track, or None.

    Only the first sequence is considered; further sequences are ignored.
    None means there is nothing to encode for this project.
    """
    if not project.sequences:
        return None
    sequence = project.sequences[0]
    for track in sequence.tracks:
        if track.track_type.upper() == VISUAL_TRACK_TYPE:
            return track
    logger.warning("No %s track in project '%s'", VISUAL_TRACK_TYPE, project.title)
    return None
