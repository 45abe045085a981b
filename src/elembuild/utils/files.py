"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from elembuild.config import IGNORE_PREFIXES


def is_ignored(path: Path, root: Path, prefixes: Iterable[str] = IGNORE_PREFIXES) -> bool:
    """True if any segment of ``path`` below ``root`` starts with a reserved prefix."""
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    prefixes = tuple(prefixes)
    return any(part.startswith(prefixes) for part in parts)


def is_within(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


def iter_source_files(
    root: Path,
    *,
    ignore_prefixes: Iterable[str] = IGNORE_PREFIXES,
    exclude: Iterable[Path] = (),
) -> Iterator[Path]:
    """Yield buildable files under ``root`` in sorted order.

    Directories, blank names, ignored segments and anything located inside one
    of the ``exclude`` directories are skipped.
    """
    prefixes = tuple(ignore_prefixes)
    excluded = [Path(item) for item in exclude]
    for item in sorted(root.rglob("*")):
        if not str(item).strip() or not item.name.strip():
            continue
        if is_ignored(item, root, prefixes):
            continue
        if item.is_dir():
            continue
        if any(is_within(item, directory) for directory in excluded):
            continue
        yield item


def write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path``, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
