"""Turn ffmpeg's stderr chatter into a 0-100 progress signal."""

import re
from typing import Callable

from reelforge.models import ProgressState

_DURATION_RE = re.compile(r"Duration: (\d+):(\d+):(\d+(?:\.\d+)?)")
_TIME_RE = re.compile(r"time=(\d+):(\d+):(\d+(?:\.\d+)?)")
_CLOCK_RE = re.compile(r"^(\d+):(\d+):(\d+(?:\.\d+)?)$")


def _to_seconds(hours: str, minutes: str, seconds: str) -> float:
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def parse_timestamp(value: float | int | str) -> float:
    """Parse seconds or an ``HH:MM:SS[.ms]`` clock string into seconds."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    m = _CLOCK_RE.match(text)
    if m:
        return _to_seconds(*m.groups())
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Not a duration: {value!r}") from None


def discover_duration(text: str) -> float | None:
    """Return the first ``Duration:`` value in *text*, if any."""
    m = _DURATION_RE.search(text)
    return _to_seconds(*m.groups()) if m else None


def latest_timestamp(text: str) -> float | None:
    """Return the last ``time=`` value in *text*, if any."""
    matches = _TIME_RE.findall(text)
    return _to_seconds(*matches[-1]) if matches else None


class ProgressTracker:
    """Stateful parser for one ffmpeg run.

    The total duration is either supplied up front via
    :meth:`set_total_duration` or discovered from the first ``Duration:``
    line. Each chunk is parsed on its own; nothing is buffered across
    chunks, so a marker split between two chunks is missed.
    """

    def __init__(self, callback: Callable[[float], None] | None = None):
        self.callback = callback
        self.state = ProgressState()

    @property
    def total_known(self) -> bool:
        return self.state.total_duration is not None

    def set_total_duration(self, value: float | int | str) -> None:
        seconds = parse_timestamp(value)
        self.state.total_duration = seconds if seconds > 0 else None

    def feed(self, chunk: str | bytes) -> float | None:
        """Consume one chunk of stderr; return the progress emitted, if any."""
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8", errors="replace")

        if not self.total_known:
            found = discover_duration(chunk)
            if found is not None and found > 0:
                self.state.total_duration = found

        current = latest_timestamp(chunk)
        if current is None:
            return None
        self.state.current = current
        if not self.total_known:
            return None

        progress = min(max(current / self.state.total_duration * 100, 0.0), 100.0)
        if self.callback is not None:
            self.callback(progress)
        return progress
