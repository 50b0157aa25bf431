"""Tests for canonical beatmap output and the Parquet catalog."""

import json

import pytest

pa = pytest.importorskip("pyarrow")

from beat_ingest.schemas.normalized import HitObject, ParsedBeatmap
from beat_ingest.storage.writer import (
    CATALOG_FILENAME,
    read_catalog,
    write_beatmap,
    write_catalog,
)


def _beatmap(title="Song", rating=2.5, n_objects=3) -> ParsedBeatmap:
    return ParsedBeatmap(
        song_info={
            "AudioFilename": "song1.mp3",
            "Mode": 1,
            "Title": title,
            "Artist": "Artist",
            "Version": "Oni",
            "StarRating": rating,
        },
        hit_objects=[HitObject(x=256, y=192, time=i * 100, type=1) for i in range(n_objects)],
    )


class TestWriteBeatmap:
    def test_writes_record(self, tmp_path):
        path = write_beatmap(_beatmap(title="うた"), "42", tmp_path)
        assert path == tmp_path / "42.wysi"

        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data) == ["songInfo", "hitObjects"]
        assert data["songInfo"]["Title"] == "うた"
        assert data["songInfo"]["StarRating"] == 2.5
        assert data["hitObjects"][1] == {
            "x": 256, "y": 192, "time": 100, "type": 1, "hitSound": 0,
        }
        # Unicode kept as-is
        assert "うた" in path.read_text(encoding="utf-8")

    def test_overwrites_existing(self, tmp_path):
        write_beatmap(_beatmap(rating=1.0), "42", tmp_path)
        path = write_beatmap(_beatmap(rating=4.0), "42", tmp_path)
        assert json.loads(path.read_text())["songInfo"]["StarRating"] == 4.0

    def test_custom_suffix(self, tmp_path):
        assert write_beatmap(_beatmap(), "7", tmp_path, ".json").name == "7.json"

    def test_failure_returns_none(self, tmp_path):
        missing_dir = tmp_path / "does-not-exist"
        assert write_beatmap(_beatmap(), "42", missing_dir) is None


class TestCatalog:
    def test_rows_per_beatmap(self, tmp_path):
        (tmp_path / "100").mkdir()
        (tmp_path / "200").mkdir()
        write_beatmap(_beatmap(title="A", n_objects=5), "1", tmp_path / "100")
        write_beatmap(_beatmap(title="B", rating=3.25), "2", tmp_path / "200")
        (tmp_path / "100" / "song1.mp3").write_bytes(b"audio")

        path = write_catalog(tmp_path)
        assert path == tmp_path / CATALOG_FILENAME

        table = read_catalog(tmp_path)
        assert table.num_rows == 2
        assert table.column("set_id").to_pylist() == ["100", "200"]
        assert table.column("beatmap_id").to_pylist() == ["1", "2"]
        assert table.column("title").to_pylist() == ["A", "B"]
        assert table.column("hit_object_count").to_pylist() == [5, 3]
        assert table.column("star_rating").to_pylist() == [2.5, 3.25]

    def test_unreadable_file_skipped(self, tmp_path):
        (tmp_path / "1").mkdir()
        (tmp_path / "1" / "broken.wysi").write_text("{not json")
        write_beatmap(_beatmap(), "ok", tmp_path / "1")

        table = read_catalog(write_catalog(tmp_path))
        assert table.column("beatmap_id").to_pylist() == ["ok"]

    def test_empty_tree(self, tmp_path):
        assert read_catalog(write_catalog(tmp_path)).num_rows == 0

    def test_missing_catalog(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_catalog(tmp_path)
