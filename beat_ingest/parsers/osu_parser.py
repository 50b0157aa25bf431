"""Parse section-based ``.osu`` beatmap text files into ParsedBeatmap records.

Only a whitelist of keys is kept from each section. Identifiers the file
omits are filled in afterwards: the set id from the containing folder, the
beatmap id from a hash of the file name.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from pathlib import Path

from beat_ingest.schemas.normalized import HOLD_NOTE_TYPE, HitObject, ParsedBeatmap
from beat_ingest.schemas.results import Failed, Parsed, ParseResult, Skipped

logger = logging.getLogger(__name__)

# 1 = percussion (taiko), 3 = lane (mania)
SUPPORTED_MODES = (1, 3)

GENERAL_STRING_KEYS = ("AudioFilename",)
GENERAL_INT_KEYS = ("AudioLeadIn", "PreviewTime", "Mode")
METADATA_STRING_KEYS = (
    "Title",
    "TitleUnicode",
    "Artist",
    "ArtistUnicode",
    "Creator",
    "Version",
)
METADATA_INT_KEYS = ("BeatmapID", "BeatmapSetID")
DIFFICULTY_FLOAT_KEYS = ("CircleSize", "ApproachRate")

BACKGROUND_EVENT_PREFIX = "0,0,"

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: str, default: int | None = 0) -> int | None:
    """Parse the leading integer of *value* ("12.5" -> 12), else *default*."""
    match = _INT_PREFIX_RE.match(value)
    if match is None:
        return default
    return int(match.group(1))


def parse_float(value: str, default: float = 0.0) -> float:
    try:
        result = float(value)
    except ValueError:
        return default
    if not math.isfinite(result):
        return default
    return result


def derive_beatmap_id(name: str) -> int:
    """Derive a stable beatmap id from a file name (without extension).

    The MD5 digest's first and last 8 hex digits are read as unsigned 32-bit
    integers and multiplied.
    """
    digest = hashlib.md5(name.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) * int(digest[-8:], 16)


def _split_key_value(line: str) -> tuple[str, str] | None:
    # Values may contain colons themselves
    if ":" not in line:
        return None
    key, value = line.split(":", 1)
    return key.strip(), value.strip()


def _parse_general(line: str, beatmap: ParsedBeatmap) -> None:
    pair = _split_key_value(line)
    if pair is None:
        return
    key, value = pair
    if key in GENERAL_STRING_KEYS:
        beatmap.song_info[key] = value
    elif key in GENERAL_INT_KEYS:
        beatmap.song_info[key] = parse_int(value)


def _parse_metadata(line: str, beatmap: ParsedBeatmap) -> None:
    pair = _split_key_value(line)
    if pair is None:
        return
    key, value = pair
    if key in METADATA_STRING_KEYS:
        beatmap.song_info[key] = value
    elif key in METADATA_INT_KEYS:
        beatmap.song_info[key] = parse_int(value)


def _parse_difficulty(line: str, beatmap: ParsedBeatmap) -> None:
    pair = _split_key_value(line)
    if pair is None:
        return
    key, value = pair
    if key in DIFFICULTY_FLOAT_KEYS:
        beatmap.song_info[key] = parse_float(value)


def _parse_event(line: str, beatmap: ParsedBeatmap) -> None:
    if not line.startswith(BACKGROUND_EVENT_PREFIX):
        return
    parts = line.split(",")
    filename = parts[2].strip()
    if len(filename) >= 2 and filename.startswith('"') and filename.endswith('"'):
        filename = filename[1:-1]
    if not filename:
        return

    beatmap.song_info["BackgroundFilename"] = filename
    beatmap.song_info["BackgroundXOffset"] = parse_int(parts[3]) if len(parts) > 3 else 0
    beatmap.song_info["BackgroundYOffset"] = parse_int(parts[4]) if len(parts) > 4 else 0


def parse_hit_object(line: str) -> HitObject | None:
    """Parse one ``x,y,time,type,hitSound[,extras]`` line, None if malformed."""
    parts = line.split(",")
    if len(parts) < 5:
        return None

    x, y, time, obj_type = (parse_int(p, None) for p in parts[:4])
    if x is None or y is None or time is None or obj_type is None:
        return None

    end_time = None
    if obj_type == HOLD_NOTE_TYPE and len(parts) >= 6:
        # endTime:hitSample
        end_time = parse_int(parts[5].split(":")[0], None)

    return HitObject(
        x=x,
        y=y,
        time=time,
        type=obj_type,
        hit_sound=parse_int(parts[4]),
        end_time=end_time,
    )


def _parse_hit_object_line(line: str, beatmap: ParsedBeatmap) -> None:
    hit_object = parse_hit_object(line)
    if hit_object is None:
        logger.warning("Skipping malformed hit object line: %r", line)
        return
    beatmap.hit_objects.append(hit_object)


_SECTION_PARSERS = {
    "General": _parse_general,
    "Metadata": _parse_metadata,
    "Difficulty": _parse_difficulty,
    "Events": _parse_event,
    "HitObjects": _parse_hit_object_line,
}


def parse_beatmap_text(text: str) -> ParsedBeatmap:
    """Scan source text section by section into a ParsedBeatmap.

    Unknown sections and keys are ignored. No identifier fix-ups are applied.
    """
    beatmap = ParsedBeatmap()
    handler = None

    for raw_line in text.splitlines():
        line = raw_line.strip()

        if line.startswith("[") and line.endswith("]"):
            handler = _SECTION_PARSERS.get(line[1:-1])
            continue

        if not line or line.startswith("//") or handler is None:
            continue

        handler(line, beatmap)

    return beatmap


def _resolve_beatmap(
    path: Path, fallback_set_id: str | None
) -> ParseResult:
    text = path.read_text(encoding="utf-8-sig")
    beatmap = parse_beatmap_text(text)
    song_info = beatmap.song_info

    if not song_info.get("Title") and song_info.get("TitleUnicode"):
        song_info["Title"] = song_info["TitleUnicode"]
    if not song_info.get("Artist") and song_info.get("ArtistUnicode"):
        song_info["Artist"] = song_info["ArtistUnicode"]

    # 0 and -1 mark unsubmitted maps, treated the same as a missing id
    set_id_value = song_info.get("BeatmapSetID", 0)
    if set_id_value > 0:
        set_id = str(set_id_value)
    else:
        set_id = fallback_set_id or path.parent.name
        song_info["BeatmapSetID"] = parse_int(set_id)
        logger.info("Using fallback BeatmapSetID %s for %s", set_id, path.name)

    beatmap_id_value = song_info.get("BeatmapID", 0)
    if beatmap_id_value > 0:
        beatmap_id = str(beatmap_id_value)
    else:
        derived = derive_beatmap_id(path.stem)
        beatmap_id = str(derived)
        song_info["BeatmapID"] = derived
        logger.info(
            "Generated fallback BeatmapID %s from filename %s", beatmap_id, path.stem
        )

    mode = song_info.get("Mode", 0)
    if mode not in SUPPORTED_MODES:
        logger.warning(
            "Mode %s not supported (only 1 or 3) in %s - skipping", mode, path
        )
        return Skipped(path, "unsupported mode")

    return Parsed(
        path=path,
        set_id=set_id,
        beatmap_id=beatmap_id,
        beatmap=beatmap,
        audio_filename=song_info.get("AudioFilename") or None,
        background_filename=song_info.get("BackgroundFilename") or None,
    )


def parse_beatmap_file(
    path: Path, fallback_set_id: str | None = None
) -> ParseResult:
    """Parse one source file.

    Never raises: read and decode errors come back as ``Failed``, unsupported
    modes as ``Skipped``.

    Args:
        path: Source ``.osu`` file.
        fallback_set_id: Set id used when the file has none, usually the
            name of the uploaded archive's folder. Defaults to the file's
            parent folder name.
    """
    path = Path(path)
    try:
        return _resolve_beatmap(path, fallback_set_id)
    except Exception as exc:
        logger.error("Failed to parse %s: %s", path, exc)
        return Failed(path, exc)
