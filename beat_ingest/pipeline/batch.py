"""Orchestrate one ingestion batch over an extracted archive folder."""

from __future__ import annotations

import contextlib
import logging
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path

from beat_ingest.parsers.osu_parser import parse_beatmap_file
from beat_ingest.pipeline.assets import AssetProcessor
from beat_ingest.pipeline.config import IngestConfig
from beat_ingest.pipeline.difficulty import estimate_star_rating
from beat_ingest.pipeline.grouping import group_by_set
from beat_ingest.pipeline.timing import correct_timing
from beat_ingest.schemas.normalized import BeatmapSet
from beat_ingest.schemas.results import Failed, Parsed, ParseResult, Skipped
from beat_ingest.storage.writer import write_beatmap, write_catalog

logger = logging.getLogger(__name__)

# set id -> [lock, number of callers holding or waiting on it]
_set_locks: dict[str, list] = {}
_set_locks_guard = threading.Lock()


@contextlib.contextmanager
def set_lock(set_id: str):
    """Serialise work on one set's canonical directory within this process.

    Entries are dropped once no caller holds or waits on them.
    """
    with _set_locks_guard:
        slot = _set_locks.setdefault(set_id, [threading.Lock(), 0])
        slot[1] += 1
    lock = slot[0]
    lock.acquire()
    try:
        yield
    finally:
        lock.release()
        with _set_locks_guard:
            slot[1] -= 1
            if slot[1] == 0:
                del _set_locks[set_id]


@dataclass
class IngestResult:
    files_found: int = 0
    parsed: int = 0
    skipped: int = 0
    failed: int = 0
    sets: int = 0
    written: int = 0
    write_failures: int = 0
    errors: list[str] = field(default_factory=list)
    input_removed: bool = False


def discover_source_files(input_dir: Path, suffix: str = ".osu") -> list[Path]:
    """Recursively find source files, sorted so canonical indices are stable."""
    return sorted(p for p in Path(input_dir).rglob(f"*{suffix}") if p.is_file())


def parse_folder(input_dir: Path, suffix: str = ".osu") -> list[ParseResult]:
    """Parse every source file under *input_dir*, using its name as fallback set id."""
    input_dir = Path(input_dir)
    fallback_set_id = input_dir.name
    return [
        parse_beatmap_file(path, fallback_set_id)
        for path in discover_source_files(input_dir, suffix)
    ]


def process_set(
    beatmap_set: BeatmapSet,
    config: IngestConfig,
    processor: AssetProcessor,
    result: IngestResult,
) -> None:
    """Prepare assets, correct timing, rate and write every beatmap of a set.

    Raises OSError if the canonical directory cannot be created.
    """
    set_dir = config.output_dir / beatmap_set.set_id
    set_dir.mkdir(parents=True, exist_ok=True)

    with set_lock(beatmap_set.set_id):
        processor.process_set(beatmap_set, set_dir)

        seen: set[str] = set()
        for entry in beatmap_set.beatmaps:
            # beatmapId names the output file; the first source to claim it wins
            if entry.beatmap_id in seen:
                logger.warning(
                    "Duplicate beatmap id %s in set %s, skipping %s",
                    entry.beatmap_id,
                    beatmap_set.set_id,
                    entry.path,
                )
                result.write_failures += 1
                result.errors.append(str(entry.path))
                continue
            seen.add(entry.beatmap_id)

            beatmap = entry.beatmap
            correct_timing(
                beatmap, beatmap_set.audio_reference(entry), config.silence_ms
            )
            beatmap.song_info["StarRating"] = estimate_star_rating(beatmap.hit_objects)

            if write_beatmap(beatmap, entry.beatmap_id, set_dir, config.output_suffix):
                result.written += 1
            else:
                result.write_failures += 1
                result.errors.append(str(entry.path))

    logger.info(
        "Set %s: %d beatmaps, %d audio, %d backgrounds",
        beatmap_set.set_id,
        len(beatmap_set.beatmaps),
        len(beatmap_set.audio_assets),
        len(beatmap_set.background_assets),
    )


def run_ingest(input_dir: Path, config: IngestConfig | None = None) -> IngestResult:
    """Run the full batch: parse, group, prepare assets, write, clean up.

    Per-file and per-asset failures are logged and counted. A failure to
    create a set's output directory propagates and leaves *input_dir* intact.
    """
    config = config or IngestConfig()
    input_dir = Path(input_dir)
    result = IngestResult()

    logger.info("Parsing beatmaps from folder: %s", input_dir)
    outcomes = parse_folder(input_dir, config.source_suffix)
    result.files_found = len(outcomes)
    logger.info("Found %d %s file(s)", result.files_found, config.source_suffix)

    for outcome in outcomes:
        if isinstance(outcome, Parsed):
            result.parsed += 1
        elif isinstance(outcome, Skipped):
            result.skipped += 1
        elif isinstance(outcome, Failed):
            result.failed += 1
            result.errors.append(str(outcome.path))

    sets = group_by_set(outcomes)
    result.sets = len(sets)

    processor = AssetProcessor(config)
    for beatmap_set in sets:
        process_set(beatmap_set, config, processor, result)

    if config.write_catalog:
        try:
            write_catalog(config.output_dir, config.output_suffix)
        except OSError:
            logger.exception("Failed to write catalog in %s", config.output_dir)

    if config.delete_input:
        try:
            shutil.rmtree(input_dir)
            result.input_removed = True
            logger.info("Removed raw folder: %s", input_dir)
        except OSError as exc:
            logger.warning("Failed to remove raw folder %s: %s", input_dir, exc)

    logger.info(
        "Ingest complete: %d parsed, %d skipped, %d failed, %d written in %d set(s)",
        result.parsed,
        result.skipped,
        result.failed,
        result.written,
        result.sets,
    )
    return result
