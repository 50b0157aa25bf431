"""Deduplicate and prepare the audio and background files of a beatmap set.

Every unique original filename in a set gets a sequential index at first
sight, which fixes its canonical name (``song{n}.mp3`` / ``bg{n}{ext}``)
before any file work starts. Audio is transcoded with leading silence when
ffmpeg is available and copied as-is otherwise; backgrounds are copied.
A failing asset is left unresolved and never aborts the set.
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable

from ffmpy import FFExecutableNotFoundError, FFRuntimeError

from beat_ingest.media.audio import ffmpeg_available, pad_with_silence
from beat_ingest.pipeline.cache import AssetMarker
from beat_ingest.pipeline.config import IngestConfig
from beat_ingest.schemas.normalized import AssetReference, BeatmapSet

logger = logging.getLogger(__name__)

_AUDIO_ERRORS = (OSError, FFRuntimeError, FFExecutableNotFoundError)


def audio_canonical_name(index: int, original: str) -> str:
    # Always re-encoded to one codec, whatever the source container
    return f"song{index}.mp3"


def background_canonical_name(index: int, original: str) -> str:
    return f"bg{index}{Path(original).suffix}"


def collect_assets(
    beatmap_set: BeatmapSet,
    attr: str,
    naming: Callable[[int, str], str],
) -> dict[str, AssetReference]:
    """Assign 1-based indices to the unique filenames named by *attr*.

    Walks the set's beatmaps in discovery order; the source path is resolved
    against the folder of the first beatmap referencing each file.
    """
    assets: dict[str, AssetReference] = {}
    for entry in beatmap_set.beatmaps:
        original = getattr(entry, attr)
        if not original or original in assets:
            continue
        assets[original] = AssetReference(
            original_filename=original,
            source_path=entry.path.parent / original,
            canonical_filename=naming(len(assets) + 1, original),
        )
    return assets


def rewrite_filenames(beatmap_set: BeatmapSet) -> None:
    """Point each beatmap's song info at its resolved canonical files."""
    for entry in beatmap_set.beatmaps:
        song_info = entry.beatmap.song_info
        audio = beatmap_set.audio_reference(entry)
        if audio is not None and audio.resolved:
            song_info["AudioFilename"] = audio.canonical_filename
        background = beatmap_set.background_reference(entry)
        if background is not None and background.resolved:
            song_info["BackgroundFilename"] = background.canonical_filename


class AssetProcessor:
    """Prepares the shared media of one set inside its canonical directory."""

    def __init__(self, config: IngestConfig | None = None):
        self.config = config or IngestConfig()

    def process_set(self, beatmap_set: BeatmapSet, set_dir: Path) -> None:
        beatmap_set.audio_assets = collect_assets(
            beatmap_set, "audio_filename", audio_canonical_name
        )
        beatmap_set.background_assets = collect_assets(
            beatmap_set, "background_filename", background_canonical_name
        )
        self.prepare_audio(beatmap_set.audio_assets.values(), set_dir)
        self.prepare_backgrounds(beatmap_set.background_assets.values(), set_dir)
        rewrite_filenames(beatmap_set)

    # --- Audio ---------------------------------------------------------------

    def prepare_audio(self, refs: Iterable[AssetReference], set_dir: Path) -> None:
        """Transcode (or copy) each audio asset once, joining all workers."""
        marker = AssetMarker(set_dir)
        use_ffmpeg = ffmpeg_available(self.config.ffmpeg_executable)
        pending: list[AssetReference] = []

        for ref in refs:
            dest = set_dir / ref.canonical_filename
            recorded = marker.lookup(ref.canonical_filename, ref.original_filename)
            # A plain copy is redone once the transcoder is available
            if dest.exists() and recorded is not None and (recorded or not use_ffmpeg):
                logger.debug("Reusing %s (silence applied: %s)", dest, recorded)
                ref.silence_applied = recorded
                ref.resolved = True
                continue
            pending.append(ref)

        if not pending:
            return

        if not use_ffmpeg:
            logger.warning(
                "%s not found on PATH; copying audio without silence padding",
                self.config.ffmpeg_executable,
            )

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = {
                pool.submit(self._prepare_audio_file, ref, set_dir, use_ffmpeg): ref
                for ref in pending
            }
            for future in as_completed(futures):
                ref = futures[future]
                try:
                    ref.silence_applied = future.result()
                except _AUDIO_ERRORS as exc:
                    logger.warning(
                        "Failed to process audio file %s: %s", ref.original_filename, exc
                    )
                    marker.forget(ref.canonical_filename)
                    (set_dir / ref.canonical_filename).unlink(missing_ok=True)
                    continue
                ref.resolved = True
                marker.record(
                    ref.canonical_filename, ref.original_filename, ref.silence_applied
                )

        try:
            marker.save()
        except OSError as exc:
            logger.warning("Failed to save asset marker %s: %s", marker.path, exc)

    def _prepare_audio_file(
        self, ref: AssetReference, set_dir: Path, use_ffmpeg: bool
    ) -> bool:
        """Write one canonical audio file; returns whether silence was applied."""
        dest = set_dir / ref.canonical_filename
        if not use_ffmpeg:
            shutil.copyfile(ref.source_path, dest)
            logger.info("Copied audio %s -> %s", ref.original_filename, dest.name)
            return False

        pad_with_silence(
            ref.source_path,
            dest,
            silence_ms=self.config.silence_ms,
            sample_rate=self.config.sample_rate,
            bitrate=self.config.audio_bitrate,
            executable=self.config.ffmpeg_executable,
        )
        logger.info("Transcoded audio %s -> %s", ref.original_filename, dest.name)
        return True

    # --- Backgrounds ---------------------------------------------------------

    def prepare_backgrounds(self, refs: Iterable[AssetReference], set_dir: Path) -> None:
        for ref in refs:
            dest = set_dir / ref.canonical_filename
            try:
                shutil.copyfile(ref.source_path, dest)
            except OSError as exc:
                logger.warning(
                    "Failed to copy background file %s: %s", ref.original_filename, exc
                )
                continue
            ref.resolved = True
            logger.info("Copied background %s -> %s", ref.original_filename, dest.name)
