#!/usr/bin/env python3
"""Generate synthetic footage for trying out ReelForge by hand.

Writes a directory of short colour-bar clips (with a sine-tone audio track)
plus one video-only clip and a small PNG logo:

  footage/blue.mp4     12s  440 Hz tone
  footage/red.mov       8s  880 Hz tone
  footage/nested/green.mp4  20s  660 Hz tone
  footage/short.mp4     3s  (skipped by auto-cut with the default min_sec=5)
  silent.mp4            4s  video only
  logo.png             64x64
"""

import subprocess
import sys
from pathlib import Path

CLIPS = [
    ("footage/blue.mp4", "blue", 12, 440),
    ("footage/red.mov", "red", 8, 880),
    ("footage/nested/green.mp4", "green", 20, 660),
    ("footage/short.mp4", "yellow", 3, 550),
]


def _ffmpeg(*args: str) -> None:
    subprocess.run(["ffmpeg", "-y", "-v", "error", *args], check=True)


def generate_clip(output: Path, color: str, duration: int, tone: int | None) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    args = ["-f", "lavfi", "-i", f"color=c={color}:s=320x240:d={duration}:r=30"]
    if tone is not None:
        args += ["-f", "lavfi", "-i", f"sine=f={tone}:d={duration}"]
    args += ["-c:v", "libx264", "-pix_fmt", "yuv420p"]
    if tone is not None:
        args += ["-c:a", "aac", "-shortest"]
    _ffmpeg(*args, str(output))


def generate_fixtures(root: Path) -> None:
    for name, color, duration, tone in CLIPS:
        generate_clip(root / name, color, duration, tone)
    generate_clip(root / "silent.mp4", "white", 4, None)
    _ffmpeg("-f", "lavfi", "-i", "color=c=orange@0.8:s=64x64,format=rgba",
            "-frames:v", "1", str(root / "logo.png"))
    print(f"Generated fixtures in: {root}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/media")
    generate_fixtures(out)
