"""Crop editor: cuts a time window out of a video without re-encoding."""

from pathlib import Path
from typing import Callable

from reelforge import ffutil, planner
from reelforge.ffutil import EngineFailure, FFmpegEngine
from reelforge.models import MediaMetadata
from reelforge.runner import run_plan


def crop_video(
    input_path: Path | str,
    start: float,
    duration: float,
    on_progress: Callable[[float], None] | None = None,
    engine: FFmpegEngine | None = None,
    metadata: MediaMetadata | None = None,
) -> Path:
    """Stream-copy ``[start, start + duration]`` of *input_path*.

    The window is clamped to the video duration; the resolved range is
    embedded in the output name. Pass *metadata* when the source has already
    been read to skip the ffprobe call. If ffmpeg fails, whatever it wrote to
    the output path is removed before the error propagates.
    """
    if metadata is None:
        metadata = ffutil.probe(input_path, engine=engine)
    window = planner.crop_window_for(metadata, start, duration)
    plan = planner.build_crop_plan(input_path, window)
    try:
        return run_plan(
            plan, on_progress=on_progress, total_duration=window.duration, engine=engine
        )
    except EngineFailure:
        plan.output.unlink(missing_ok=True)
        raise
