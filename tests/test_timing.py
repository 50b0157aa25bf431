"""Tests for silence timing correction."""

from pathlib import Path

from beat_ingest.pipeline.timing import apply_silence_offset, correct_timing
from beat_ingest.schemas.normalized import AssetReference, HitObject, ParsedBeatmap


def _beatmap(preview=-1) -> ParsedBeatmap:
    return ParsedBeatmap(
        song_info={"PreviewTime": preview, "AudioFilename": "song1.mp3"},
        hit_objects=[
            HitObject(x=256, y=192, time=500, type=1),
            HitObject(x=256, y=192, time=550, type=7, end_time=600),
        ],
    )


def _audio(resolved=True, silence_applied=True) -> AssetReference:
    return AssetReference(
        original_filename="audio.mp3",
        source_path=Path("/raw/audio.mp3"),
        canonical_filename="song1.mp3",
        silence_applied=silence_applied,
        resolved=resolved,
    )


class TestApplySilenceOffset:
    def test_shifts_preview_and_objects(self):
        beatmap = _beatmap(preview=-1)
        apply_silence_offset(beatmap, 3000)
        assert beatmap.song_info["PreviewTime"] == 3000
        assert beatmap.hit_objects[0].time == 3500
        assert beatmap.hit_objects[1].time == 3550
        assert beatmap.hit_objects[1].end_time == 3600

    def test_positive_preview(self):
        beatmap = _beatmap(preview=1200)
        apply_silence_offset(beatmap, 3000)
        assert beatmap.song_info["PreviewTime"] == 4200

    def test_negative_times_not_clamped(self):
        beatmap = ParsedBeatmap(hit_objects=[HitObject(x=0, y=0, time=-200, type=1)])
        apply_silence_offset(beatmap, 3000)
        assert beatmap.hit_objects[0].time == 2800

    def test_missing_preview_set_to_offset(self):
        beatmap = ParsedBeatmap(hit_objects=[HitObject(x=0, y=0, time=500, type=1)])
        apply_silence_offset(beatmap, 3000)
        assert beatmap.song_info["PreviewTime"] == 3000


class TestCorrectTiming:
    def test_padded_asset(self):
        beatmap = _beatmap()
        assert correct_timing(beatmap, _audio(), 3000) is True
        assert beatmap.hit_objects[0].time == 3500

    def test_copied_asset_unchanged(self):
        beatmap = _beatmap()
        assert correct_timing(beatmap, _audio(silence_applied=False), 3000) is False
        assert beatmap.hit_objects[0].time == 500
        assert beatmap.song_info["PreviewTime"] == -1

    def test_unresolved_or_missing_asset_unchanged(self):
        beatmap = _beatmap()
        assert correct_timing(beatmap, _audio(resolved=False), 3000) is False
        assert correct_timing(beatmap, None, 3000) is False
        assert beatmap.hit_objects[0].time == 500
