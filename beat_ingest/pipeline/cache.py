"""Persist which canonical audio files were actually silence-padded."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

MARKER_FILENAME = ".assets.json"


class AssetMarker:
    """Tracks, per canonical audio file, its source name and padding state.

    Stored as JSON inside a set's canonical directory so a retried batch can
    tell a padded transcode apart from a plain-copy fallback.
    """

    def __init__(self, set_dir: Path):
        self.path = Path(set_dir) / MARKER_FILENAME
        self.entries: dict[str, dict] = self._load(self.path)

    @staticmethod
    def _load(path: Path) -> dict:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable asset marker %s: %s", path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed asset marker %s", path)
            return {}
        return data

    def lookup(self, canonical_filename: str, original_filename: str) -> bool | None:
        """Return the recorded padding flag, or None if nothing matching is recorded."""
        entry = self.entries.get(canonical_filename)
        if not isinstance(entry, dict) or entry.get("original") != original_filename:
            return None
        return bool(entry.get("silence_applied", False))

    def record(
        self, canonical_filename: str, original_filename: str, silence_applied: bool
    ) -> None:
        self.entries[canonical_filename] = {
            "original": original_filename,
            "silence_applied": silence_applied,
        }

    def forget(self, canonical_filename: str) -> None:
        self.entries.pop(canonical_filename, None)

    def save(self) -> None:
        self.path.write_text(
            json.dumps(self.entries, indent=2, sort_keys=True), encoding="utf-8"
        )
