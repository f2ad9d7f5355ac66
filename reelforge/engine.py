"""Orchestrator: batch auto-cropping and highlight-reel assembly."""

import logging
import random
from pathlib import Path
from typing import Callable, Iterable

from reelforge import ffutil
from reelforge.editors.concat import concat_videos
from reelforge.editors.crop import crop_video
from reelforge.ffutil import FFmpegEngine, MediaError, PlanValidationError
from reelforge.manifest import AutoCutConfig

logger = logging.getLogger(__name__)


def _normalize_extensions(extensions: str | Iterable[str]) -> set[str]:
    if isinstance(extensions, str):
        extensions = extensions.split(",")
    return {
        "." + ext.strip().lower().lstrip(".")
        for ext in extensions
        if ext.strip()
    }


def find_media_files(root_dir: Path | str, extensions: str | Iterable[str]) -> list[Path]:
    """Recursively list files under *root_dir* with an allowed extension."""
    allowed = _normalize_extensions(extensions)
    return sorted(
        p for p in Path(root_dir).rglob("*")
        if p.is_file() and p.suffix.lower() in allowed
    )


def pick_clip(
    duration: float, min_sec: float, max_sec: float, rng: random.Random
) -> tuple[float, float] | None:
    """Choose (start, length) for a random clip, or None if too short.

    The length is uniform in ``[min_sec, max_sec]`` capped at *duration*;
    the start is uniform in ``[0, duration - length]``. A zero-length source
    yields None even when *min_sec* is 0.
    """
    if duration <= 0 or duration < min_sec:
        return None
    length = min(rng.uniform(min_sec, max_sec), duration)
    start = rng.uniform(0.0, duration - length)
    return start, length


def auto_crop_batch(
    root_dir: Path | str,
    min_sec: float = 5,
    max_sec: float = 10,
    extensions: str | Iterable[str] = "mp4,mov",
    rng: random.Random | None = None,
    engine: FFmpegEngine | None = None,
) -> list[Path]:
    """Cut one random clip out of every matching file under *root_dir*.

    Files that are too short are skipped; a file that fails to probe or crop
    is logged and skipped without aborting the batch. Returns the produced
    clips in processing order.
    """
    if min_sec < 0 or max_sec < min_sec:
        raise PlanValidationError(
            f"Need 0 <= min_sec <= max_sec, got min_sec={min_sec}, max_sec={max_sec}"
        )
    rng = rng or random.Random()

    files = find_media_files(root_dir, extensions)
    clips: list[Path] = []
    for i, path in enumerate(files, 1):
        logger.info("Processing file %d/%d: %s", i, len(files), path.name)
        try:
            metadata = ffutil.probe(path, engine=engine)
            if metadata.video is None:
                raise PlanValidationError(f"No video stream in {path}")
            duration = metadata.video.duration

            choice = pick_clip(duration, min_sec, max_sec, rng)
            if choice is None:
                logger.info(
                    "  Skipped: duration %.2fs is shorter than %ss", duration, min_sec
                )
                continue

            start, length = choice
            clip = crop_video(path, start, length, engine=engine, metadata=metadata)
            clips.append(clip)
            logger.info(
                "  Clip: %.2f-%.2fs (%.2fs)", start, start + length, length
            )
        except (MediaError, OSError) as e:
            logger.error("  Failed to process %s: %s", path, e)
    return clips


def _remove_clips(clips: list[Path]) -> None:
    for clip in clips:
        try:
            clip.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove intermediate clip %s: %s", clip, e)


def auto_cut_video(
    root_dir: Path | str,
    output_path: Path | str,
    config: AutoCutConfig | None = None,
    rng: random.Random | None = None,
    engine: FFmpegEngine | None = None,
    on_progress: Callable[[float], None] | None = None,
) -> Path:
    """Build a highlight reel from random clips of every video in *root_dir*.

    Intermediate clips are deleted whether or not the concat succeeds; a
    concat failure is re-raised after cleanup.

    Raises:
        EmptyInputError: No clip could be produced.
        EngineFailure: The concat step failed.
    """
    config = config or AutoCutConfig()
    clips = auto_crop_batch(
        root_dir,
        min_sec=config.min_sec,
        max_sec=config.max_sec,
        extensions=config.extensions,
        rng=rng,
        engine=engine,
    )
    try:
        return concat_videos(clips, output_path, on_progress=on_progress, engine=engine)
    finally:
        _remove_clips(clips)
