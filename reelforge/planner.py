"""Pure builders that turn editing intents into ffmpeg invocation plans.

Nothing here touches the filesystem or spawns a process. Builders that need
source facts take an already-probed :class:`MediaMetadata`.
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from reelforge.ffutil import PlanValidationError
from reelforge.models import Corner, CropWindow, InvocationPlan, MediaMetadata, Point

PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow", "placebo",
)

# Keep stderr free of ANSI colour codes so progress lines parse cleanly.
BASE_ENV = {"AV_LOG_FORCE_NOCOLOR": "1"}


def _num(value: float) -> str:
    """Compact, deterministic number formatting (millisecond precision)."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _finite(value, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise PlanValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(result):
        raise PlanValidationError(f"{name} must be finite, got {value!r}")
    return result


def _pixel(value, name: str) -> int:
    result = _finite(value, name)
    if result != int(result):
        raise PlanValidationError(f"{name} must be a whole number of pixels, got {value!r}")
    return int(result)


def _check_crf(crf) -> int:
    value = _finite(crf, "crf")
    if not 0 <= value <= 51 or value != int(value):
        raise PlanValidationError(f"crf must be an integer in [0, 51], got {crf!r}")
    return int(value)


def _check_preset(preset: str) -> str:
    if preset not in PRESETS:
        raise PlanValidationError(
            f"Unknown preset {preset!r}; expected one of {', '.join(PRESETS)}"
        )
    return preset


def _coerce_position(position) -> Corner | Point:
    if isinstance(position, (Corner, Point)):
        return position
    if isinstance(position, str):
        try:
            return Corner(position)
        except ValueError:
            valid = ", ".join(c.value for c in Corner)
            raise PlanValidationError(
                f"Unknown position {position!r}; expected one of {valid} or a point"
            ) from None
    if isinstance(position, Mapping) and {"x", "y"} <= set(position):
        x, y = position["x"], position["y"]
    elif isinstance(position, (tuple, list)) and len(position) == 2:
        x, y = position
    else:
        raise PlanValidationError(f"Unsupported watermark position: {position!r}")
    return Point(_pixel(x, "position.x"), _pixel(y, "position.y"))


@dataclass(frozen=True)
class WatermarkSpec:
    """Validated watermark options."""

    position: Corner | Point = Corner.LEFT_TOP
    margin: int = 10
    scale: float = 1.0
    opacity: float = 1.0
    rotation: float = 0.0
    crf: int = 23
    preset: str = "ultrafast"

    def __post_init__(self):
        object.__setattr__(self, "position", _coerce_position(self.position))
        margin = _finite(self.margin, "margin")
        if margin < 0:
            raise PlanValidationError(f"margin must be >= 0, got {self.margin!r}")
        scale = _finite(self.scale, "scale")
        if scale <= 0:
            raise PlanValidationError(f"scale must be > 0, got {self.scale!r}")
        opacity = _finite(self.opacity, "opacity")
        if not 0 <= opacity <= 1:
            raise PlanValidationError(f"opacity must be in [0, 1], got {self.opacity!r}")
        object.__setattr__(self, "margin", int(margin))
        object.__setattr__(self, "scale", scale)
        object.__setattr__(self, "opacity", opacity)
        object.__setattr__(self, "rotation", _finite(self.rotation, "rotation"))
        object.__setattr__(self, "crf", _check_crf(self.crf))
        object.__setattr__(self, "preset", _check_preset(self.preset))

    @classmethod
    def from_options(cls, **options) -> "WatermarkSpec":
        """Merge caller-supplied options (``None`` means default) with defaults."""
        unknown = set(options) - set(cls.__dataclass_fields__)
        if unknown:
            raise PlanValidationError(
                f"Unknown watermark option(s): {', '.join(sorted(unknown))}"
            )
        return cls(**{k: v for k, v in options.items() if v is not None})

    @property
    def tag(self) -> str:
        """File-name suffix distinguishing differently-watermarked outputs."""
        if isinstance(self.position, Point):
            pos = f"{self.position.x}_{self.position.y}"
        else:
            pos = self.position.value
        return ".".join([
            "watermark",
            _num(self.scale),
            _num(self.opacity),
            _num(self.rotation),
            pos,
            str(self.margin),
        ])


# ---------------------------------------------------------------------------
# Watermark
# ---------------------------------------------------------------------------

def overlay_position(position: Corner | Point, margin: int) -> str:
    """Overlay x/y expression. W/H: main video size, w/h: scaled watermark."""
    if isinstance(position, Point):
        return f"x={position.x + margin}:y={position.y + margin}"
    x = f"W-w-{margin}" if position in (Corner.RIGHT_TOP, Corner.RIGHT_BOTTOM) else str(margin)
    y = f"H-h-{margin}" if position in (Corner.LEFT_BOTTOM, Corner.RIGHT_BOTTOM) else str(margin)
    return f"x={x}:y={y}"


def watermark_filter(spec: WatermarkSpec) -> str:
    """filter_complex string: input 0 is the video, input 1 the watermark."""
    angle = f"{_num(spec.rotation)}*PI/180"
    chain = ",".join([
        "format=rgba",
        f"rotate={angle}:ow=rotw({angle}):oh=roth({angle}):c=none",
        f"colorchannelmixer=aa={_num(spec.opacity)}",
        f"scale=iw*{_num(spec.scale)}:-1",
    ])
    return f"[1]{chain}[wm];[0][wm]overlay={overlay_position(spec.position, spec.margin)}"


def _derived_output(input_path: Path, tag: str) -> Path:
    return input_path.with_name(f"{input_path.stem}.{tag}{input_path.suffix}")


def build_watermark_plan(
    input_path: Path | str, watermark_path: Path | str, spec: WatermarkSpec
) -> InvocationPlan:
    input_path = Path(input_path)
    output = _derived_output(input_path, spec.tag)
    fc = watermark_filter(spec)
    args = (
        "-y",
        "-i", str(input_path),
        "-i", str(watermark_path),
        "-filter_complex", fc,
        "-c:a", "copy",
        "-crf", str(spec.crf),
        "-preset", spec.preset,
        str(output),
    )
    return InvocationPlan(args=args, output=output, env=dict(BASE_ENV), filter_graph=fc)


# ---------------------------------------------------------------------------
# Crop
# ---------------------------------------------------------------------------

def clamp_crop_window(start, duration, source_duration) -> CropWindow:
    """Clamp a requested window so it lies inside ``[0, source_duration]``."""
    start = _finite(start, "start")
    duration = _finite(duration, "duration")
    source = _finite(source_duration, "source duration")
    if source < 0:
        raise PlanValidationError(f"source duration must be >= 0, got {source_duration!r}")

    start = min(max(start, 0.0), source)
    duration = max(duration, 0.0)
    if start + duration > source:
        duration = source - start
    return CropWindow(start=start, duration=duration)


def crop_window_for(metadata: MediaMetadata, start, duration) -> CropWindow:
    if metadata.video is None:
        raise PlanValidationError("Cannot crop: no video stream")
    return clamp_crop_window(start, duration, metadata.video.duration)


def build_crop_plan(input_path: Path | str, window: CropWindow) -> InvocationPlan:
    input_path = Path(input_path)
    output = _derived_output(
        input_path, f"{_num(window.start)}-{_num(window.end)}.crop"
    )
    args = (
        "-y",
        "-i", str(input_path),
        "-ss", _num(window.start),
        "-t", _num(window.duration),
        "-c:v", "copy",
        "-c:a", "copy",
        str(output),
    )
    return InvocationPlan(args=args, output=output, env=dict(BASE_ENV))


# ---------------------------------------------------------------------------
# Format conversion / audio extraction
# ---------------------------------------------------------------------------

def build_convert_plan(
    input_path: Path | str,
    output_path: Path | str,
    codec: str = "libx264",
    crf: int = 23,
    preset: str = "ultrafast",
) -> InvocationPlan:
    """Single-pass video re-encode; audio is stream-copied."""
    if not codec:
        raise PlanValidationError("codec must not be empty")
    output = Path(output_path)
    args = (
        "-y",
        "-i", str(input_path),
        "-c:v", codec,
        "-crf", str(_check_crf(crf)),
        "-preset", _check_preset(preset),
        "-c:a", "copy",
        str(output),
    )
    return InvocationPlan(args=args, output=output, env=dict(BASE_ENV))


def build_extract_audio_plan(
    input_path: Path | str,
    metadata: MediaMetadata,
    codec: str = "copy",
    bitrate: str | int | None = None,
) -> InvocationPlan:
    """Extract the audio track.

    ``copy`` resolves to the source's own codec name, since the output file
    extension (and muxer) is derived from it.
    """
    if metadata.audio is None:
        raise PlanValidationError(f"No audio stream in {input_path}")
    if codec == "copy":
        codec = metadata.audio.codec
    if bitrate is None:
        bitrate = metadata.audio.bit_rate

    input_path = Path(input_path)
    output = input_path.with_name(f"{input_path.name}.{codec}")
    args = ["-y", "-i", str(input_path), "-vn", "-acodec", codec]
    if bitrate is not None:
        args += ["-b:a", str(bitrate)]
    args.append(str(output))
    return InvocationPlan(args=tuple(args), output=output, env=dict(BASE_ENV))


# ---------------------------------------------------------------------------
# Concat
# ---------------------------------------------------------------------------

def _concat_entry(path: Path | str) -> str:
    normalized = os.path.abspath(path).replace("\\", "/")
    escaped = normalized.replace("'", "'\\''")
    return f"file '{escaped}'"


def concat_list_content(paths: Iterable[Path | str]) -> str:
    """Body of an ffmpeg concat-demuxer list file, order preserved."""
    return "\n".join(_concat_entry(p) for p in paths) + "\n"


def build_concat_plan(list_file: Path | str, output_path: Path | str) -> InvocationPlan:
    output = Path(output_path)
    args = (
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_file),
        "-c", "copy",
        str(output),
    )
    return InvocationPlan(args=args, output=output, env=dict(BASE_ENV))
