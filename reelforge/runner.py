"""Execute an InvocationPlan and map the exit status to success/failure."""

import logging
import shlex
from pathlib import Path
from typing import Callable

from reelforge.ffutil import EngineFailure, FFmpegEngine, default_engine
from reelforge.models import InvocationPlan
from reelforge.progress import ProgressTracker

logger = logging.getLogger(__name__)


def run_plan(
    plan: InvocationPlan,
    on_progress: Callable[[float], None] | None = None,
    total_duration: float | str | None = None,
    engine: FFmpegEngine | None = None,
) -> Path:
    """Run *plan* and return the absolute output path.

    Args:
        plan: The invocation to execute.
        on_progress: Optional callback receiving a percentage in [0, 100].
        total_duration: Known total length of the output, if the caller has
            it (e.g. the sum of concat inputs). Otherwise the duration is
            taken from ffmpeg's own ``Duration:`` line.
        engine: Engine to run with; defaults to the configured ffmpeg.

    Raises:
        EngineFailure: ffmpeg exited non-zero.
    """
    engine = engine or default_engine()

    tracker = None
    if on_progress is not None:
        tracker = ProgressTracker(on_progress)
        if total_duration is not None:
            tracker.set_total_duration(total_duration)

    logger.debug("ffmpeg %s", shlex.join(plan.args))
    outcome = engine.run(
        list(plan.args),
        env=plan.env,
        on_stderr=tracker.feed if tracker else None,
    )
    if outcome.returncode != 0:
        raise EngineFailure(outcome.returncode, outcome.stderr)
    return Path(plan.output).resolve()
