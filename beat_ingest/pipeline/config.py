"""Ingestion configuration: pipeline tunables in one dataclass."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path


@dataclass
class IngestConfig:
    """Settings for one ingestion run."""

    # Layout
    output_dir: Path = Path("data/beatmaps")
    source_suffix: str = ".osu"
    output_suffix: str = ".wysi"

    # Audio
    ffmpeg_executable: str = "ffmpeg"
    silence_ms: int = 3000  # leading silence, also added to chart timing
    sample_rate: int = 44100
    audio_bitrate: str = "192k"
    max_workers: int = 4  # concurrent ffmpeg processes

    # Batch
    delete_input: bool = True
    write_catalog: bool = False

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def save(self, path: Path) -> None:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = asdict(self)
        data["output_dir"] = str(self.output_dir)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> IngestConfig:
        """Load config from JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        # Only pass known fields to handle forward/backward compat
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
