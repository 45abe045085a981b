"""Mapping source paths onto the build tree."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath


def normalize(path: Path | str) -> Path:
    """Collapse ``.`` and ``..`` segments without touching the filesystem."""
    return Path(os.path.normpath(path))


def extension_key(filename: Path | str) -> str | None:
    """Return the converter lookup key for ``filename``.

    The key is made of the final one or two dot-delimited suffixes of the
    basename, e.g. ``hello.js.css.styl`` -> ``.css.styl``. Files without an
    extension have no key.
    """
    exts = os.path.basename(filename).split(".")[1:]
    if not exts:
        return None
    return "." + ".".join(exts[-2:])


def trim_last_extension(path: Path) -> Path:
    """Drop the final suffix of a basename with at least two extensions."""
    if len(path.name.split(".")) > 2:
        return path.with_name(path.name.rsplit(".", 1)[0])
    return path


def to_build_path(
    source: Path | str,
    source_root: Path | str,
    build_root: Path | str,
    trim_extension: bool = False,
) -> Path:
    """Map a source path to its artifact path under ``build_root``.

    ``a/b.html.jade`` becomes ``<build_root>/a/b.html`` when
    ``trim_extension`` is set; single-extension and extensionless names are
    left alone.
    """
    path = normalize(source)
    if trim_extension:
        path = trim_last_extension(path)
    relative = os.path.relpath(path, normalize(source_root))
    return normalize(Path(build_root) / relative)


def to_index_name(path: Path | str, build_root: Path | str) -> str:
    """Build-relative POSIX name of an artifact, as stored in the index."""
    relative = os.path.relpath(normalize(path), normalize(build_root))
    return PurePosixPath(*Path(relative).parts).as_posix()
