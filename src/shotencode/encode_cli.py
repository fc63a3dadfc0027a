"""CLI for encoding — run every project in a job manifest through ffmpeg.

Usage:
    shotencode encode --manifest job.yaml
    shotencode encode --manifest job.yaml --output-dir renders/ -v
"""

import argparse
import logging
import sys

from .job_manifest import load_job_manifest
from .pipeline import PipelineState, ProjectEncodeTask


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(args=None) -> int:
    parser = argparse.ArgumentParser(
        description="Encode the visual track of every project in a job manifest.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML job manifest",
    )
    parser.add_argument(
        "--output-dir", default=None,
        help="Override the manifest's output_dir",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging (includes ffmpeg command lines)",
    )
    parsed = parser.parse_args(args)
    setup_logging(parsed.verbose)

    metadata = load_job_manifest(parsed.manifest)
    if parsed.output_dir:
        metadata.output_dir = parsed.output_dir

    with ProjectEncodeTask(metadata) as task:
        task.initialize()
        print(f"Encoding {len(task.items)} of {len(metadata.refs)} project(s)")
        state = task.start()

    if state is PipelineState.COMPLETED:
        print(f"Done: {metadata.output_dir}")
        return 0
    print("Encode failed, see log for details.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
