"""Subcommand dispatcher for shotencode.

Usage:
    shotencode encode --manifest job.yaml
    shotencode plan   --manifest job.yaml
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="shotencode",
        description="Encode trimmed shots from project descriptors.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("encode", help="Assemble job items and run the encode")
    subparsers.add_parser("plan", help="Assemble job items and print them, no encode")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "encode":
        from .encode_cli import main as encode_main
        sys.exit(encode_main(remaining))
    elif parsed.command == "plan":
        from .plan_cli import main as plan_main
        sys.exit(plan_main(remaining))


if __name__ == "__main__":
    main()
