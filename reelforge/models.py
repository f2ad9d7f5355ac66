"""Shared data types used across ReelForge."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class VideoInfo:
    """First video stream of a probed file."""

    codec: str
    width: int
    height: int
    duration: float
    bit_rate: int | None = None
    frame_rate: float | None = None
    pixel_format: str | None = None


@dataclass(frozen=True)
class AudioInfo:
    """First audio stream of a probed file."""

    codec: str
    sample_rate: int
    duration: float
    channels: int | None = None
    bit_rate: int | None = None


@dataclass(frozen=True)
class MediaMetadata:
    """Snapshot of ffprobe output. At least one of video/audio is set."""

    video: VideoInfo | None = None
    audio: AudioInfo | None = None
    container: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "container", MappingProxyType(dict(self.container)))

    @property
    def duration(self) -> float:
        if self.video is not None:
            return self.video.duration
        if self.audio is not None:
            return self.audio.duration
        return float(self.container.get("duration", 0.0))

    def to_dict(self) -> dict:
        """Plain, JSON-serialisable copy."""
        return {
            "video": asdict(self.video) if self.video is not None else None,
            "audio": asdict(self.audio) if self.audio is not None else None,
            "container": dict(self.container),
        }


class Corner(str, Enum):
    LEFT_TOP = "left-top"
    RIGHT_TOP = "right-top"
    LEFT_BOTTOM = "left-bottom"
    RIGHT_BOTTOM = "right-bottom"


@dataclass(frozen=True)
class Point:
    """Absolute pixel offset from the top-left of the main video."""

    x: int
    y: int


@dataclass(frozen=True)
class CropWindow:
    """A start/duration pair in seconds, already clamped to the source."""

    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass
class ProgressState:
    """Progress of one ffmpeg run: total is None until known."""

    total_duration: float | None = None
    current: float = 0.0


@dataclass(frozen=True)
class InvocationPlan:
    """Everything needed to run ffmpeg once.

    ``args`` excludes the ffmpeg binary itself; ``env`` is merged into the
    child environment.
    """

    args: tuple[str, ...]
    output: Path
    env: Mapping[str, str] = field(default_factory=dict)
    filter_graph: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


@dataclass(frozen=True)
class CodecInfo:
    """One row of ``ffmpeg -codecs``."""

    type: str | None
    decode: bool
    encode: bool
    intra_frame_only: bool
    lossy: bool
    lossless: bool
    description: str
