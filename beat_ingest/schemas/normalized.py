"""Normalized beatmap data format.

Dataclasses shared by every stage of the ingestion pipeline. The parser
fills them from source text files; asset processing and timing correction
rewrite them in place before the writer serializes them to the canonical
``{songInfo, hitObjects}`` record consumed by the playback client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from beat_ingest.schemas.results import Parsed

HOLD_NOTE_TYPE = 7


@dataclass
class HitObject:
    """A single timed chart event (tap or hold note)."""

    x: int
    y: int
    time: int  # ms from track start
    type: int
    hit_sound: int = 0
    end_time: int | None = None  # only for HOLD_NOTE_TYPE

    def to_dict(self) -> dict:
        data = {
            "x": self.x,
            "y": self.y,
            "time": self.time,
            "type": self.type,
            "hitSound": self.hit_sound,
        }
        if self.end_time is not None:
            data["endTime"] = self.end_time
        return data


@dataclass
class ParsedBeatmap:
    """One difficulty of a song: whitelisted song info plus its chart."""

    song_info: dict[str, str | int | float] = field(default_factory=dict)
    hit_objects: list[HitObject] = field(default_factory=list)  # file order

    def to_dict(self) -> dict:
        return {
            "songInfo": dict(self.song_info),
            "hitObjects": [h.to_dict() for h in self.hit_objects],
        }


@dataclass
class AssetReference:
    """A unique audio or background file referenced by a set."""

    original_filename: str
    source_path: Path
    canonical_filename: str
    silence_applied: bool = False
    resolved: bool = False  # True once the canonical file exists on disk


@dataclass
class BeatmapSet:
    """All beatmaps of one batch sharing a set id, plus their shared media."""

    set_id: str
    beatmaps: list[Parsed] = field(default_factory=list)  # discovery order
    audio_assets: dict[str, AssetReference] = field(default_factory=dict)
    background_assets: dict[str, AssetReference] = field(default_factory=dict)

    def audio_reference(self, entry: Parsed) -> AssetReference | None:
        """Return the audio asset *entry* points at, if it has one."""
        if not entry.audio_filename:
            return None
        return self.audio_assets.get(entry.audio_filename)

    def background_reference(self, entry: Parsed) -> AssetReference | None:
        if not entry.background_filename:
            return None
        return self.background_assets.get(entry.background_filename)
