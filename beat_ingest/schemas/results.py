"""Tagged outcomes of parsing one source file.

Callers dispatch on the concrete type so that an intentionally excluded
file (``Skipped``) is never confused with a broken one (``Failed``).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from beat_ingest.schemas.normalized import ParsedBeatmap


@dataclass(frozen=True)
class Parsed:
    path: Path
    set_id: str
    beatmap_id: str
    beatmap: ParsedBeatmap
    # Original references, kept apart from song_info which gets rewritten
    audio_filename: str | None = None
    background_filename: str | None = None


@dataclass(frozen=True)
class Skipped:
    path: Path
    reason: str


@dataclass(frozen=True)
class Failed:
    path: Path
    error: Exception


ParseResult = Union[Parsed, Skipped, Failed]
