"""CLI for planning — show the job items a manifest would produce.

Runs configuration and per-reference processing against a recording
engine, then prints the items as YAML. Nothing is encoded.

Usage:
    shotencode plan --manifest job.yaml
"""

import argparse
from pathlib import Path

import yaml

from .encode_cli import setup_logging
from .job import EncodeJobItem
from .job_manifest import load_job_manifest
from .pipeline import ProjectEncodeTask


class PlanEngine:
    """Engine stand-in that accepts every item and never encodes."""

    def __init__(self):
        self.items: list[EncodeJobItem] = []

    def add_item(self, item: EncodeJobItem) -> None:
        self.items.append(item)

    def encode(self, on_progress=None) -> None:
        raise RuntimeError("plan engine does not encode")

    def close(self) -> None:
        pass


def missing_sources(items: list[EncodeJobItem]) -> list[str]:
    """Clip paths that do not exist on disk, in item order."""
    missing = []
    for item in items:
        for clip in item.clips:
            if not Path(clip.path).is_file() and clip.path not in missing:
                missing.append(clip.path)
    return missing


def main(args=None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the job items a job manifest would produce.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML job manifest",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging",
    )
    parsed = parser.parse_args(args)
    setup_logging(parsed.verbose)

    metadata = load_job_manifest(parsed.manifest)
    engine = PlanEngine()
    with ProjectEncodeTask(metadata, engine=engine) as task:
        task.initialize()

    print(yaml.safe_dump(
        {"items": [item.to_dict() for item in engine.items]},
        sort_keys=False,
    ), end="")

    missing = missing_sources(engine.items)
    if missing:
        print(f"Missing {len(missing)} source file(s):")
        for p in missing:
            print(f"  - {p}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
