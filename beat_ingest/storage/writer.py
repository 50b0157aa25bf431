"""Write canonical beatmap records and the Parquet catalog of an output tree."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from beat_ingest.schemas.normalized import ParsedBeatmap

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".wysi"
CATALOG_FILENAME = "catalog.parquet"

CATALOG_SCHEMA = pa.schema(
    [
        pa.field("set_id", pa.string()),
        pa.field("beatmap_id", pa.string()),
        pa.field("title", pa.string()),
        pa.field("artist", pa.string()),
        pa.field("creator", pa.string()),
        pa.field("version", pa.string()),
        pa.field("mode", pa.int8()),
        pa.field("star_rating", pa.float32()),
        pa.field("hit_object_count", pa.int32()),
        pa.field("audio_filename", pa.string()),
        pa.field("background_filename", pa.string()),
    ]
)


def serialize_beatmap(beatmap: ParsedBeatmap) -> str:
    return json.dumps(beatmap.to_dict(), indent=2, ensure_ascii=False)


def write_beatmap(
    beatmap: ParsedBeatmap,
    beatmap_id: str,
    set_dir: Path,
    suffix: str = DEFAULT_SUFFIX,
) -> Path | None:
    """Write ``{songInfo, hitObjects}`` to ``set_dir/<beatmap_id><suffix>``.

    An existing file is overwritten. Failures are logged and reported by
    returning None so sibling beatmaps still get written.
    """
    path = Path(set_dir) / f"{beatmap_id}{suffix}"
    try:
        path.write_text(serialize_beatmap(beatmap), encoding="utf-8")
    except (OSError, TypeError, ValueError):
        logger.exception("Failed to write %s", path)
        return None
    return path


def _catalog_row(path: Path) -> dict:
    data = json.loads(path.read_text(encoding="utf-8"))
    info = data.get("songInfo", {})
    return {
        "set_id": path.parent.name,
        "beatmap_id": path.stem,
        "title": str(info.get("Title", "")),
        "artist": str(info.get("Artist", "")),
        "creator": str(info.get("Creator", "")),
        "version": str(info.get("Version", "")),
        "mode": int(info.get("Mode", 0)),
        "star_rating": float(info.get("StarRating", 0.0)),
        "hit_object_count": len(data.get("hitObjects", [])),
        "audio_filename": str(info.get("AudioFilename", "")),
        "background_filename": str(info.get("BackgroundFilename", "")),
    }


def write_catalog(output_dir: Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    """Index every canonical beatmap under *output_dir* into one Parquet file.

    Produces ``output_dir/catalog.parquet`` with one row per beatmap file,
    in sorted path order. Unreadable files are logged and left out.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    cols: dict[str, list] = {k: [] for k in CATALOG_SCHEMA.names}
    for path in sorted(output_dir.glob(f"*/*{suffix}")):
        try:
            row = _catalog_row(path)
        except (OSError, ValueError):
            logger.exception("Skipping unreadable beatmap %s", path)
            continue
        for key, value in row.items():
            cols[key].append(value)

    table = pa.table(cols, schema=CATALOG_SCHEMA)
    catalog_path = output_dir / CATALOG_FILENAME
    pq.write_table(table, catalog_path, compression="snappy")
    logger.info("Wrote catalog of %d beatmaps to %s", table.num_rows, catalog_path)
    return catalog_path


def read_catalog(path: Path) -> pa.Table:
    """Read a catalog, given the file itself or the output directory holding it."""
    path = Path(path)
    if path.is_dir():
        path = path / CATALOG_FILENAME
    if not path.exists():
        raise FileNotFoundError(f"No catalog at {path}")
    return pq.read_table(path)
