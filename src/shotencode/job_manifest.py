"""Job manifest loader — where media lives and which projects to encode.

Follows the same ${var} path resolution as the other manifests.

Job manifest schema:
  paths:
    media: "/data/media"
  input_dir: "${media}/input"      # where shot media is looked up
  output_dir: "${media}/output"    # where encoded files are written
  properties:
    preset: "$PRESETS/h264.yaml"   # env placeholders expanded at run time
  refs:
    - src: "${media}/projects/a.yaml"
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .paths import resolve_path_vars

PRESET_PROPERTY = "preset"


@dataclass
class JobMetadata:
    input_dir: str
    output_dir: str
    properties: dict[str, str] = field(default_factory=dict)
    refs: list[str] = field(default_factory=list)

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name)


def load_job_manifest(manifest_path: str | Path) -> JobMetadata:
    """Load, validate, and normalize a job manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in input_dir, output_dir and ref srcs.
      3. Validate each ref entry (src).

    Raises:
        ValueError: Missing/invalid fields.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Job manifest: top level must be a mapping")
    if "input_dir" not in raw:
        raise ValueError("Job manifest: missing required 'input_dir' field")
    if "output_dir" not in raw:
        raise ValueError("Job manifest: missing required 'output_dir' field")

    paths = raw.get("paths", {})
    input_dir = resolve_path_vars(str(raw["input_dir"]), paths)
    output_dir = resolve_path_vars(str(raw["output_dir"]), paths)

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        raise ValueError("Job manifest: 'properties' must be a mapping")

    refs = []
    for i, ref in enumerate(raw.get("refs") or []):
        if not isinstance(ref, dict) or "src" not in ref:
            raise ValueError(f"Ref {i}: missing required field 'src'")
        refs.append(resolve_path_vars(str(ref["src"]), paths))

    return JobMetadata(
        input_dir=input_dir,
        output_dir=output_dir,
        properties={str(k): str(v) for k, v in properties.items() if v is not None},
        refs=refs,
    )
