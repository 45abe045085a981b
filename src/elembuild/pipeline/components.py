"""Component descriptor parsing."""

from __future__ import annotations

import json
import os
from pathlib import Path, PurePosixPath

from elembuild.errors import DescriptorError
from elembuild.models import ComponentDescriptor

DESCRIPTOR_FILENAME = "component.json"
COMPONENTS_DIRNAME = "components"
DEFAULT_MAIN = "index.js"


def is_descriptor(path: Path) -> bool:
    return path.name == DESCRIPTOR_FILENAME


def in_components_dir(path: Path, source_root: Path) -> bool:
    """True if ``path`` sits somewhere below a ``components`` directory."""
    try:
        parts = path.relative_to(source_root).parts
    except ValueError:
        parts = path.parts
    return COMPONENTS_DIRNAME in parts[:-1]


def parse_component(descriptor: Path, source_root: Path) -> ComponentDescriptor:
    """Read a descriptor and express its entry file relative to ``source_root``."""
    try:
        data = json.loads(descriptor.read_text(encoding="utf-8"))
    except OSError as exc:
        raise DescriptorError(descriptor, f"unreadable: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DescriptorError(descriptor, f"malformed: {exc}") from exc

    if not isinstance(data, dict):
        raise DescriptorError(descriptor, "expected a JSON object")
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise DescriptorError(descriptor, "missing component name")
    main = data.get("main") or DEFAULT_MAIN
    if not isinstance(main, str):
        raise DescriptorError(descriptor, "'main' must be a string")

    entry = os.path.normpath(os.path.join(descriptor.parent, main))
    relative = os.path.relpath(entry, os.path.normpath(source_root))
    return ComponentDescriptor(name=name, main=PurePosixPath(*Path(relative).parts).as_posix())
