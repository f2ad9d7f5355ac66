"""Watermark editor: overlays an image on a video or still."""

from pathlib import Path
from typing import Callable

from reelforge import planner
from reelforge.ffutil import FFmpegEngine
from reelforge.planner import WatermarkSpec
from reelforge.runner import run_plan


def add_watermark(
    input_path: Path | str,
    watermark_path: Path | str,
    spec: WatermarkSpec | None = None,
    on_progress: Callable[[float], None] | None = None,
    engine: FFmpegEngine | None = None,
    **options,
) -> Path:
    """Overlay *watermark_path* on *input_path*.

    Either pass a ready :class:`WatermarkSpec` or individual options
    (``position``, ``margin``, ``scale``, ``opacity``, ``rotation``, ``crf``,
    ``preset``), which are merged with the defaults. The output lands next
    to the input with the options encoded in its name, so an identical call
    overwrites the previous result.
    """
    if spec is None:
        spec = WatermarkSpec.from_options(**options)
    plan = planner.build_watermark_plan(input_path, watermark_path, spec)
    return run_plan(plan, on_progress=on_progress, engine=engine)
