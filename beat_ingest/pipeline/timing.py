"""Shift chart timing to line up with silence-padded audio."""

from beat_ingest.schemas.normalized import AssetReference, ParsedBeatmap

SILENCE_OFFSET_MS = 3000


def apply_silence_offset(beatmap: ParsedBeatmap, offset_ms: int = SILENCE_OFFSET_MS) -> None:
    """Add *offset_ms* to the preview point and every hit object, in place.

    A missing or negative PreviewTime means "no explicit preview" and counts
    as 0; the result never lands inside the inserted silence.
    """
    song_info = beatmap.song_info
    preview = max(int(song_info.get("PreviewTime", -1)), 0)
    song_info["PreviewTime"] = max(preview + offset_ms, offset_ms)

    for hit_object in beatmap.hit_objects:
        hit_object.time += offset_ms
        if hit_object.end_time is not None:
            hit_object.end_time += offset_ms


def correct_timing(
    beatmap: ParsedBeatmap,
    audio: AssetReference | None,
    offset_ms: int = SILENCE_OFFSET_MS,
) -> bool:
    """Apply the offset iff *audio* was resolved with silence padding.

    Returns True when the chart was shifted.
    """
    if audio is None or not audio.resolved or not audio.silence_applied:
        return False
    apply_silence_offset(beatmap, offset_ms)
    return True
