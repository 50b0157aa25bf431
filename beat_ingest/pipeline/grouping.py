"""Bucket parsed beatmaps by set id."""

from __future__ import annotations

from typing import Iterable

from beat_ingest.schemas.normalized import BeatmapSet
from beat_ingest.schemas.results import Parsed, ParseResult


def group_by_set(results: Iterable[ParseResult]) -> list[BeatmapSet]:
    """Partition ``Parsed`` outcomes by set id, ignoring skips and failures.

    Both the sets and the beatmaps inside each set keep first-discovery order.
    """
    sets: dict[str, BeatmapSet] = {}
    for result in results:
        if not isinstance(result, Parsed):
            continue
        beatmap_set = sets.get(result.set_id)
        if beatmap_set is None:
            beatmap_set = sets[result.set_id] = BeatmapSet(set_id=result.set_id)
        beatmap_set.beatmaps.append(result)
    return list(sets.values())
