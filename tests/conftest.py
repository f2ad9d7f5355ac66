"""Shared test fixtures."""

from pathlib import Path

import pytest

from reelforge.ffutil import RunOutcome

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def probe_json(
    duration: float = 10.0,
    video: bool = True,
    audio: bool = True,
    audio_codec: str = "aac",
) -> dict:
    """ffprobe-shaped JSON for a synthetic file."""
    streams = []
    if video:
        streams.append({
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "r_frame_rate": "30/1",
            "pix_fmt": "yuv420p",
            "duration": str(duration),
            "bit_rate": "4000000",
        })
    if audio:
        streams.append({
            "codec_type": "audio",
            "codec_name": audio_codec,
            "sample_rate": "44100",
            "channels": 2,
            "duration": str(duration),
            "bit_rate": "128000",
        })
    return {
        "format": {"duration": str(duration), "bit_rate": "4128000", "format_name": "mp4"},
        "streams": streams,
    }


class FakeEngine:
    """In-memory stand-in for FFmpegEngine.

    ``durations`` maps a file name to its duration for probing; ``failures``
    maps a file name to a failure raised (or returncode returned) when it
    appears in a run's arguments. Successful runs create the output file;
    failing runs also leave a truncated output when ``partial_writes`` is set.
    """

    def __init__(self, durations=None, stderr_lines=None, codecs_report=""):
        self.durations: dict[str, float] = dict(durations or {})
        self.probe_overrides: dict[str, dict] = {}
        self.failures: dict[str, int] = {}
        self.partial_writes = False
        self.probe_errors: dict[str, Exception] = {}
        self.stderr_lines: list[str] = list(stderr_lines or [])
        self.codecs_report = codecs_report
        self.inspected: list[str] = []
        self.runs: list[dict] = []
        self.list_files: list[tuple[Path, str]] = []

    def probe(self, args):
        path = args[-1]
        name = Path(path).name
        self.inspected.append(path)
        if name in self.probe_errors:
            raise self.probe_errors[name]
        if name in self.probe_overrides:
            return self.probe_overrides[name]
        return probe_json(self.durations.get(name, 10.0))

    def run(self, args, env=None, on_stderr=None):
        self.runs.append({"args": list(args), "env": env})
        if "-f" in args and "concat" in args:
            list_file = Path(args[args.index("-i") + 1])
            self.list_files.append((list_file, list_file.read_text()))

        for line in self.stderr_lines:
            if on_stderr is not None:
                on_stderr(line)

        for name, rc in self.failures.items():
            if any(Path(a).name == name for a in args):
                if self.partial_writes:
                    Path(args[-1]).write_bytes(b"partial")
                return RunOutcome(returncode=rc, stderr=f"{name}: Invalid data found\n")

        Path(args[-1]).write_bytes(b"fake media " + " ".join(args).encode())
        return RunOutcome(returncode=0, stderr="".join(self.stderr_lines))

    def query(self, args):
        return self.codecs_report


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"
