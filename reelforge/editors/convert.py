"""Format conversion and audio extraction editors."""

from pathlib import Path
from typing import Callable

from reelforge import ffutil, planner
from reelforge.ffutil import FFmpegEngine
from reelforge.runner import run_plan


def convert_format(
    input_path: Path | str,
    output_path: Path | str,
    codec: str = "libx264",
    crf: int = 23,
    preset: str = "ultrafast",
    on_progress: Callable[[float], None] | None = None,
    engine: FFmpegEngine | None = None,
) -> Path:
    """Re-encode the video stream with *codec*; audio is copied as-is."""
    plan = planner.build_convert_plan(input_path, output_path, codec, crf, preset)
    return run_plan(plan, on_progress=on_progress, engine=engine)


def extract_audio(
    input_path: Path | str,
    codec: str = "copy",
    bitrate: str | int | None = None,
    on_progress: Callable[[float], None] | None = None,
    engine: FFmpegEngine | None = None,
) -> Path:
    """Write the audio track to ``<input>.<codec>``.

    ``copy`` and a missing *bitrate* are resolved from the probed source.
    """
    metadata = ffutil.probe(input_path, engine=engine)
    plan = planner.build_extract_audio_plan(input_path, metadata, codec, bitrate)
    return run_plan(plan, on_progress=on_progress, engine=engine)
