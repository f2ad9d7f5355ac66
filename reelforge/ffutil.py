"""FFmpeg/ffprobe subprocess helpers."""

import json
import math
import os
import shutil
import subprocess
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Callable

from reelforge.models import AudioInfo, CodecInfo, MediaMetadata, VideoInfo


class MediaError(Exception):
    """Base class for failures raised by ReelForge operations."""


class FFmpegNotFoundError(RuntimeError):
    pass


class ProbeFailure(MediaError):
    """ffprobe exited non-zero or produced output we could not use."""


class EngineFailure(MediaError):
    """ffmpeg exited non-zero while transcoding."""

    def __init__(self, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        tail = stderr.strip().splitlines()[-5:]
        super().__init__(f"ffmpeg failed (rc={exit_code}): " + " | ".join(tail))


class PlanValidationError(MediaError, ValueError):
    """Parameters cannot be turned into a valid ffmpeg invocation."""


class EmptyInputError(MediaError, ValueError):
    """An operation that needs at least one input received none."""


@dataclass
class RunOutcome:
    returncode: int
    stderr: str


class FFmpegEngine:
    """Narrow wrapper around the ffmpeg and ffprobe binaries.

    Everything above this class talks to it through ``probe``, ``run`` and
    ``query`` so tests can substitute a fake.
    """

    def __init__(self, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe"):
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    @classmethod
    def from_env(cls) -> "FFmpegEngine":
        return cls(
            ffmpeg=os.environ.get("REELFORGE_FFMPEG", "ffmpeg"),
            ffprobe=os.environ.get("REELFORGE_FFPROBE", "ffprobe"),
        )

    def probe(self, args: list[str]) -> dict:
        """Run ffprobe and decode its JSON output."""
        cmd = [self.ffprobe, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise FFmpegNotFoundError(f"{self.ffprobe} not found on PATH")

        if result.returncode != 0:
            raise ProbeFailure(
                f"ffprobe failed (rc={result.returncode}): {result.stderr.strip()}"
            )
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeFailure(f"ffprobe returned malformed JSON: {e}") from e

    def run(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        on_stderr: Callable[[str], object] | None = None,
    ) -> RunOutcome:
        """Run ffmpeg, feeding each stderr line to *on_stderr* as it arrives.

        Text-mode decoding splits ffmpeg's carriage-return progress updates
        into separate lines.
        """
        cmd = [self.ffmpeg, *args]
        child_env = {**os.environ, **env} if env else None
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                env=child_env,
            )
        except FileNotFoundError:
            raise FFmpegNotFoundError(f"{self.ffmpeg} not found on PATH")

        lines: list[str] = []
        with proc:
            for line in proc.stderr:
                lines.append(line)
                if on_stderr is not None:
                    on_stderr(line)
            returncode = proc.wait()
        return RunOutcome(returncode=returncode, stderr="".join(lines))

    def query(self, args: list[str]) -> str:
        """Run ffmpeg for an informational report and return its stdout."""
        cmd = [self.ffmpeg, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise FFmpegNotFoundError(f"{self.ffmpeg} not found on PATH")
        if result.returncode != 0:
            raise EngineFailure(result.returncode, result.stderr)
        return result.stdout


def default_engine() -> FFmpegEngine:
    return FFmpegEngine.from_env()


def check_ffmpeg(engine: FFmpegEngine | None = None) -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    engine = engine or default_engine()
    for cmd in (engine.ffmpeg, engine.ffprobe):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def _required_float(value, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ProbeFailure(f"ffprobe field {name!r} is not numeric: {value!r}")
    if not math.isfinite(result):
        raise ProbeFailure(f"ffprobe field {name!r} is not finite: {value!r}")
    return result


def _optional_int(value) -> int | None:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return int(result) if math.isfinite(result) else None


def _frame_rate(value) -> float | None:
    # r_frame_rate is a fraction string such as "30000/1001"
    try:
        return float(Fraction(value))
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def parse_metadata(data: dict) -> MediaMetadata:
    """Normalise ffprobe's ``-show_format -show_streams`` JSON."""
    if not isinstance(data, dict):
        raise ProbeFailure("ffprobe output is not a JSON object")

    streams = data.get("streams") or []
    fmt = data.get("format") or {}

    video_stream = next(
        (s for s in streams if s.get("codec_type") == "video"), None
    )
    audio_stream = next(
        (s for s in streams if s.get("codec_type") == "audio"), None
    )
    if video_stream is None and audio_stream is None:
        raise ProbeFailure("No audio or video stream found")

    video = None
    if video_stream is not None:
        video = VideoInfo(
            codec=video_stream.get("codec_name", "unknown"),
            width=int(_required_float(video_stream.get("width"), "width")),
            height=int(_required_float(video_stream.get("height"), "height")),
            duration=_required_float(
                video_stream.get("duration", fmt.get("duration")), "duration"
            ),
            bit_rate=_optional_int(video_stream.get("bit_rate", fmt.get("bit_rate"))),
            frame_rate=_frame_rate(video_stream.get("r_frame_rate")),
            pixel_format=video_stream.get("pix_fmt"),
        )

    audio = None
    if audio_stream is not None:
        audio = AudioInfo(
            codec=audio_stream.get("codec_name", "unknown"),
            sample_rate=int(
                _required_float(audio_stream.get("sample_rate"), "sample_rate")
            ),
            duration=_required_float(
                audio_stream.get("duration", fmt.get("duration")), "duration"
            ),
            channels=_optional_int(audio_stream.get("channels")),
            bit_rate=_optional_int(audio_stream.get("bit_rate", fmt.get("bit_rate"))),
        )

    container = {
        key: str(value)
        for key, value in fmt.items()
        if not isinstance(value, (dict, list))
    }
    return MediaMetadata(video=video, audio=audio, container=container)


def probe(input_path: Path | str, engine: FFmpegEngine | None = None) -> MediaMetadata:
    """Extract media metadata via ffprobe. Never cached."""
    engine = engine or default_engine()
    data = engine.probe([
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ])
    return parse_metadata(data)


get_metadata = probe


# ---------------------------------------------------------------------------
# Codec table
# ---------------------------------------------------------------------------

_CODEC_TYPES = {
    "V": "video",
    "A": "audio",
    "S": "subtitle",
    "D": "data",
    "T": "attachment",
}


def parse_codecs(text: str) -> dict[str, CodecInfo]:
    """Parse the report printed by ``ffmpeg -codecs``.

    Rows after the ``-------`` separator look like
    `` DEV.LS h264     H.264 / AVC / MPEG-4 AVC``: six flag columns, the
    codec name, then a free-text description.
    """
    _, sep, body = text.partition("-------")
    if not sep:
        raise ValueError("codec report has no '-------' separator")

    codecs: dict[str, CodecInfo] = {}
    for line in body.splitlines():
        if not line.strip():
            continue
        flags = line[1:7]
        rest = line[7:].strip()
        if len(flags) < 6 or not rest:
            continue
        name, _, description = rest.partition(" ")
        codecs[name] = CodecInfo(
            type=_CODEC_TYPES.get(flags[2]),
            decode=flags[0] == "D",
            encode=flags[1] == "E",
            intra_frame_only=flags[3] == "I",
            lossy=flags[4] == "L",
            lossless=flags[5] == "S",
            description=description.strip(),
        )
    return codecs


def list_codecs(engine: FFmpegEngine | None = None) -> dict[str, CodecInfo]:
    """Return the codecs known to the local ffmpeg build."""
    engine = engine or default_engine()
    return parse_codecs(engine.query(["-hide_banner", "-v", "quiet", "-codecs"]))
