"""Shared fixtures for the ingestion tests."""

import shutil
from pathlib import Path

import pytest

from beat_ingest.pipeline.config import IngestConfig

FIXTURES = Path(__file__).parent / "fixtures"

MISSING_FFMPEG = "beat-ingest-test-missing-ffmpeg"


def build_osu(
    *,
    mode: int | None = 1,
    audio: str | None = "audio.mp3",
    background: str | None = "bg.jpg",
    beatmap_id: int | None = None,
    set_id: int | None = None,
    version: str = "Normal",
    preview: int | None = -1,
    times: tuple[int, ...] = (500, 1000, 1500),
) -> str:
    """Render a minimal .osu file."""
    lines = ["osu file format v14", "", "[General]"]
    if audio is not None:
        lines.append(f"AudioFilename: {audio}")
    if preview is not None:
        lines.append(f"PreviewTime: {preview}")
    if mode is not None:
        lines.append(f"Mode: {mode}")
    lines += ["", "[Metadata]", "Title:Song", "Artist:Artist", "Creator:Mapper",
              f"Version:{version}"]
    if beatmap_id is not None:
        lines.append(f"BeatmapID:{beatmap_id}")
    if set_id is not None:
        lines.append(f"BeatmapSetID:{set_id}")
    lines += ["", "[Events]"]
    if background is not None:
        lines.append(f'0,0,"{background}",0,0')
    lines += ["", "[HitObjects]"]
    lines += [f"256,192,{t},1,0,0:0:0:0:" for t in times]
    return "\n".join(lines) + "\n"


@pytest.fixture
def osu_text():
    return build_osu


@pytest.fixture
def taiko_set(tmp_path):
    """A writable copy of the fixture archive, extracted as folder ``12345``."""
    folder = tmp_path / "raw" / "12345"
    shutil.copytree(FIXTURES / "taiko_set", folder)
    return folder


@pytest.fixture
def config(tmp_path):
    """Config writing under tmp_path with no transcoder on PATH."""
    return IngestConfig(
        output_dir=tmp_path / "beatmaps",
        ffmpeg_executable=MISSING_FFMPEG,
        max_workers=2,
    )
