"""Path utilities — shot media resolution and manifest path variables."""

import glob
import logging
import os
import re
from pathlib import Path

from .project import Shot

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = "/manifest"
SEGMENTED_DESCRIPTOR_EXT = ".ism"
SEGMENTED_MEDIA_EXT = ".ismv"


def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def expand_env(path: str) -> str:
    """Expand $VAR / ${VAR} environment placeholders and a leading ~."""
    return os.path.expanduser(os.path.expandvars(path))


def find_segmented_media(stem: str, input_dir: str | Path) -> str | None:
    """Find the first '<stem>*.ismv' file in input_dir.

    Matches are sorted so the choice does not depend on directory order.
    Returns the matching file name, or None.
    """
    pattern = glob.escape(stem) + "*" + SEGMENTED_MEDIA_EXT
    logger.info("Looking for ismv files with pattern %s on %s", pattern, input_dir)
    matches = sorted(p.name for p in Path(input_dir).glob(pattern) if p.is_file())
    return matches[0] if matches else None


def resolve_video_path(shot: Shot, input_dir: str | Path) -> str:
    """Map a shot's primary resource ref to a media file in input_dir.

    Steps:
      1. Take the first resource ref.
      2. Strip a trailing '/manifest' segment (smooth-streaming URLs).
      3. Keep the file name after the last '/'.
      4. For a '.ism' descriptor, look for '<stem>*.ismv' next to it and
         use the first match. Without a match the '.ism' name is kept;
         the engine rejects it later.
      5. Join with input_dir.
    """
    ref = shot.source.primary_ref
    if ref.endswith(MANIFEST_SUFFIX):
        ref = ref[:ref.rfind("/")]

    filename = ref[ref.rfind("/") + 1:]

    if filename.endswith(SEGMENTED_DESCRIPTOR_EXT):
        stem = filename[:-len(SEGMENTED_DESCRIPTOR_EXT)]
        match = find_segmented_media(stem, input_dir)
        if match is not None:
            filename = match
        else:
            logger.warning("No ismv media found for %s in %s", filename, input_dir)

    return os.path.join(str(input_dir), filename)
