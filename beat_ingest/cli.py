"""Command-line interface for the beatmap ingestion pipeline."""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path


def _build_config(args: argparse.Namespace):
    from beat_ingest.pipeline.config import IngestConfig

    config = IngestConfig()
    if args.config:
        config = IngestConfig.load(Path(args.config))

    overrides = {}
    if args.output:
        overrides["output_dir"] = Path(args.output)
    if args.ffmpeg:
        overrides["ffmpeg_executable"] = args.ffmpeg
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.keep_input:
        overrides["delete_input"] = False
    if args.catalog:
        overrides["write_catalog"] = True
    # replace() re-runs __post_init__ validation
    return dataclasses.replace(config, **overrides)


def cmd_ingest(args: argparse.Namespace) -> None:
    from beat_ingest.pipeline.batch import run_ingest

    config = _build_config(args)
    result = run_ingest(Path(args.input), config)
    print(
        f"Done: {result.written} beatmaps written in {result.sets} set(s) "
        f"({result.skipped} skipped, {result.failed} failed) -> {config.output_dir}"
    )


def cmd_parse(args: argparse.Namespace) -> None:
    from beat_ingest.parsers.osu_parser import parse_beatmap_file
    from beat_ingest.schemas.results import Failed, Parsed

    outcome = parse_beatmap_file(Path(args.file), args.set_id)
    if isinstance(outcome, Parsed):
        print(f"Set {outcome.set_id}, beatmap {outcome.beatmap_id}")
        print(json.dumps(outcome.beatmap.to_dict(), indent=2, ensure_ascii=False))
    elif isinstance(outcome, Failed):
        print(f"Failed: {outcome.error}")
        sys.exit(1)
    else:
        print(f"Skipped: {outcome.reason}")


def cmd_catalog(args: argparse.Namespace) -> None:
    from beat_ingest.storage.writer import read_catalog, write_catalog

    path = write_catalog(Path(args.output), args.suffix)
    print(f"Catalogued {read_catalog(path).num_rows} beatmaps -> {path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="beat-ingest",
        description="Convert extracted beatmap archives into canonical beatmap sets",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    # ingest
    ing = sub.add_parser("ingest", help="Ingest an extracted archive folder")
    ing.add_argument("input", help="Folder holding the extracted archive")
    ing.add_argument("--output", default=None,
                     help="Canonical output root (default: data/beatmaps)")
    ing.add_argument("--config", default=None, help="Optional JSON config override")
    ing.add_argument("--ffmpeg", default=None, help="ffmpeg executable name or path")
    ing.add_argument("--workers", type=int, default=None,
                     help="Max concurrent ffmpeg processes (default: 4)")
    ing.add_argument("--keep-input", action="store_true",
                     help="Do not delete the input folder afterwards")
    ing.add_argument("--catalog", action="store_true",
                     help="Refresh catalog.parquet after the batch")

    # parse
    prs = sub.add_parser("parse", help="Parse a single .osu file and print it")
    prs.add_argument("file")
    prs.add_argument("--set-id", default=None,
                     help="Fallback set id (default: parent folder name)")

    # catalog
    cat = sub.add_parser("catalog", help="Rebuild the Parquet catalog")
    cat.add_argument("--output", default="data/beatmaps")
    cat.add_argument("--suffix", default=".wysi")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "ingest": cmd_ingest,
        "parse": cmd_parse,
        "catalog": cmd_catalog,
    }

    handler = commands.get(args.command)
    if handler:
        handler(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
