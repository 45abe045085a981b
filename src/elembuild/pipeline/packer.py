"""Asset packing and production bundling."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from elembuild.errors import BundleError
from elembuild.models import BuildIndex
from elembuild.utils.paths import to_index_name

LOGGER = logging.getLogger(__name__)

BUNDLE_FILENAME = "assets.json"


def pack(build_root: Path, files: Iterable[str]) -> str:
    """Serialize built files into one ``name -> content`` JSON document.

    Names are build-relative paths and are kept in the given order.
    """
    result: Dict[str, str] = {}
    for name in files:
        data = (Path(build_root) / name).read_bytes()
        result[name] = data.decode("utf-8", errors="replace")
    return json.dumps(result)


def group_of(name: str, groups: Iterable[str]) -> Optional[str]:
    """Top-level group a build-relative ``name`` belongs to, if any.

    Nested files belong to their first path segment. A root file belongs to
    the group its name is built on: extensions are stripped one at a time
    until the remainder names a group, so ``a.b.html`` goes to ``a.b`` even
    when ``a`` exists too.
    """
    groups = set(groups)
    head, sep, _ = name.partition("/")
    if sep:
        return head if head in groups else None
    candidate = name
    while candidate not in groups:
        if "." not in candidate:
            return None
        candidate = candidate.rsplit(".", 1)[0]
    return candidate


def bundle_groups(build_root: Path, index: BuildIndex) -> Dict[str, str]:
    """Write one bundle per top-level group and record it in ``index``.

    Only files already listed in the index are packed. Returns the mapping of
    bundled file to bundle name that was merged into ``index.packages``.
    Raises :class:`BundleError` when a bundle would replace an existing file.
    """
    build_root = Path(build_root)
    groups = sorted(path.name for path in build_root.iterdir() if path.is_dir())
    members: Dict[str, List[str]] = {}
    for name in index.files:
        group = group_of(name, groups)
        if group is not None:
            members.setdefault(group, []).append(name)

    packages: Dict[str, str] = {}
    for group in groups:
        files = sorted(members.get(group, []))
        if not files:
            continue
        bundle_name = f"{group}/{BUNDLE_FILENAME}"
        bundle_path = build_root / bundle_name
        if bundle_name in index.files or bundle_path.exists():
            raise BundleError(f"Bundle {bundle_name} would overwrite an existing file")
        bundle_path.write_text(pack(build_root, files), encoding="utf-8")
        LOGGER.info("Packed %d files into %s", len(files), bundle_name)
        for name in files:
            packages[name] = bundle_name
        index.add_file(bundle_name)

    index.packages.update(packages)
    return packages
