#!/usr/bin/env python3
"""Generate synthetic input media for the example job manifest.

Creates the files demo-project.yaml refers to in examples/demo-input/:
three solid-color clips whose first half second shows the clip name, so
shot order and trim points are easy to check in the encoded output.
The interview clip is written as a segmented-stream pair
(interview.ism descriptor + interview_720.ismv media).

Usage:
    python examples/generate_demo_media.py
    # Then encode:
    DEMO_PRESETS=examples shotencode encode --manifest examples/demo-job.yaml
"""

import numpy as np
from moviepy import ColorClip, CompositeVideoClip, ImageClip
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-input"
SIZE = (320, 240)
FPS = 30

# (file name, color, duration in seconds)
CLIPS = [
    ("intro.mp4",            (180, 60, 60), 6.0),   # red
    ("interview_720.ismv",   (60, 60, 180), 12.0),  # blue
    ("outro.mp4",            (60, 160, 60), 5.0),   # green
]

ISM_DESCRIPTORS = ["interview.ism"]


def _make_label_frame(label: str, bg_color: tuple[int, int, int]) -> np.ndarray:
    """White clip name on a dimmed version of the clip color."""
    dim = tuple(max(c // 3, 20) for c in bg_color)
    img = Image.new("RGB", SIZE, dim)
    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 28
        )
    except OSError:
        font = ImageFont.load_default()
    bbox = draw.textbbox((0, 0), label, font=font)
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(
        ((SIZE[0] - tw) / 2, (SIZE[1] - th) / 2),
        label,
        fill=(255, 255, 255),
        font=font,
    )
    return np.array(img)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, duration in CLIPS:
        out = OUTPUT_DIR / name
        if out.exists():
            print(f"  skip {name} (exists)")
            continue

        body = ColorClip(size=SIZE, color=color, duration=duration)
        label = ImageClip(_make_label_frame(name.split(".")[0], color), duration=0.5)

        final = CompositeVideoClip([body, label], size=SIZE)
        # ffmpeg detects the format by content, so .ismv media is plain mp4 here.
        final.write_videofile(str(out), fps=FPS, codec="libx264", logger=None)
        print(f"  wrote {name} ({duration}s)")

    for name in ISM_DESCRIPTORS:
        (OUTPUT_DIR / name).write_text("<smil/>\n")
        print(f"  wrote {name} (descriptor stub)")

    print(f"\nDone. {len(CLIPS)} clips in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
