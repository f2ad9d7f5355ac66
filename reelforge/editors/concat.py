"""Concat editor: joins clips end to end with the concat demuxer."""

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Sequence

from reelforge import ffutil, planner
from reelforge.ffutil import EmptyInputError, FFmpegEngine
from reelforge.runner import run_plan

logger = logging.getLogger(__name__)


def total_duration(
    inputs: Sequence[Path | str], engine: FFmpegEngine | None = None
) -> float:
    """Sum of the probed durations of *inputs*, probed concurrently."""
    with ThreadPoolExecutor(max_workers=min(8, len(inputs)) or 1) as pool:
        durations = pool.map(
            lambda p: ffutil.probe(p, engine=engine).duration, inputs
        )
        return sum(durations)


def concat_videos(
    inputs: Sequence[Path | str],
    output_path: Path | str,
    on_progress: Callable[[float], None] | None = None,
    engine: FFmpegEngine | None = None,
) -> Path:
    """Concatenate *inputs* (in the given order) into *output_path*.

    Streams are copied, so the inputs must share codecs and parameters. Each
    call writes its own temporary list file and removes it afterwards.
    """
    if not inputs:
        raise EmptyInputError("concat_videos called with empty input list")

    known_total = None
    if on_progress is not None:
        known_total = total_duration(inputs, engine=engine)

    fd, list_name = tempfile.mkstemp(prefix="reelforge_concat_", suffix=".txt")
    list_file = Path(list_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(planner.concat_list_content(inputs))
        plan = planner.build_concat_plan(list_file, output_path)
        logger.debug("Concatenating %d inputs into %s", len(inputs), output_path)
        return run_plan(
            plan, on_progress=on_progress, total_duration=known_total, engine=engine
        )
    finally:
        list_file.unlink(missing_ok=True)
