"""Density-based star rating for a finished chart."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from beat_ingest.schemas.normalized import HitObject

WINDOW_MS = 1000
OVERALL_WEIGHT = 0.4
PEAK_WEIGHT = 0.8
SCALE = 1.5


def peak_notes_per_second(times: np.ndarray, window_ms: int = WINDOW_MS) -> int:
    """Largest number of notes inside any trailing *window_ms* window.

    *times* must be sorted. For note ``i`` the window starts at the first note
    no more than *window_ms* before it.
    """
    starts = np.searchsorted(times, times - window_ms, side="left")
    sizes = np.arange(len(times)) - starts + 1
    return int(sizes.max())


def estimate_star_rating(hit_objects: Sequence[HitObject]) -> float:
    """Compute the star rating, rounded to 2 decimals (0 for < 2 objects).

    ``raw = 0.4 * overall_nps + 0.8 * peak_nps`` and the rating is
    ``ln(1 + raw) * 1.5``. Duration is clamped to at least one second.
    """
    if len(hit_objects) < 2:
        return 0.0

    times = np.sort(np.array([h.time for h in hit_objects], dtype=np.int64))
    duration_sec = max(float(times[-1] - times[0]) / 1000, 1.0)
    overall_nps = len(times) / duration_sec
    peak_nps = peak_notes_per_second(times)

    raw = OVERALL_WEIGHT * overall_nps + PEAK_WEIGHT * peak_nps
    return round(math.log(1 + raw) * SCALE, 2)
