"""JSON manifest schema for auto-cut jobs."""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class AutoCutConfig:
    """Sampling parameters for auto-cropping a directory of videos."""

    min_sec: float = 5
    max_sec: float = 10
    extensions: str = "mp4,mov"


@dataclass
class Manifest:
    """Top-level auto-cut manifest."""

    input_dir: Path
    output: Path
    version: str = "1"
    seed: int | None = None
    auto_cut: AutoCutConfig = field(default_factory=AutoCutConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input_dir" not in data or "output" not in data:
        raise ValueError("Manifest must contain 'input_dir' and 'output' fields")

    auto_cut = AutoCutConfig(**data["auto_cut"]) if "auto_cut" in data else AutoCutConfig()

    return Manifest(
        version=data.get("version", "1"),
        input_dir=Path(data["input_dir"]),
        output=Path(data["output"]),
        seed=data.get("seed"),
        auto_cut=auto_cut,
    )
