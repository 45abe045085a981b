"""Persistent mtime table used to detect stale sources."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict

from elembuild.errors import CacheError

LOGGER = logging.getLogger(__name__)

CACHE_FILENAME = "last_build.json"
CACHE_VERSION = 1


def _key(source: Path | str) -> str:
    return os.path.normpath(os.path.abspath(source))


class StalenessCache:
    """Last-seen modification time per source file.

    The table is loaded once from ``path``. A missing file means no history;
    any other failure to read or parse it is fatal.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.records: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise CacheError(f"Unable to read {self.path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CacheError(f"Corrupt staleness table {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CacheError(f"Corrupt staleness table {self.path}: expected an object")

        if "version" not in data:
            # Un-tagged tables are a flat path -> mtime mapping.
            return {str(k): str(v) for k, v in data.items()}
        if data["version"] != CACHE_VERSION:
            raise CacheError(f"Unsupported staleness table version: {data['version']!r}")
        records = data.get("records", {})
        if not isinstance(records, dict):
            raise CacheError(f"Corrupt staleness table {self.path}: records must be an object")
        return {str(k): str(v) for k, v in records.items()}

    @staticmethod
    def stamp(source: Path | str) -> str:
        """String form of the current modification time of ``source``."""
        return str(os.stat(source).st_mtime_ns)

    def is_current(self, source: Path | str, stamp: str) -> bool:
        return self.records.get(_key(source)) == stamp

    def record(self, source: Path | str, stamp: str) -> None:
        self.records[_key(source)] = stamp

    def is_outdated(self, source: Path | str) -> bool:
        """Report whether ``source`` changed since last seen, marking it seen."""
        stamp = self.stamp(source)
        if self.is_current(source, stamp):
            return False
        self.record(source, stamp)
        return True

    def clear(self) -> None:
        self.records.clear()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": CACHE_VERSION, "records": self.records}
        self.path.write_text(json.dumps(payload, sort_keys=True), encoding="utf-8")
        LOGGER.debug("Saved %d staleness records to %s", len(self.records), self.path)