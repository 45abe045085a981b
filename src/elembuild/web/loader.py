"""Loader script and bootstrap pages handed to browsers."""

from __future__ import annotations

import json
from importlib.resources import files

from elembuild.models import BuildIndex

LOADER_URL = "/loader.js"


def _load_template() -> str:
    template = files("elembuild.web").joinpath("templates", "loader.js")
    return template.read_text(encoding="utf-8")


def generate_loader_js(
    index: BuildIndex, domain: str, basepath: str = "/", *, production: bool = False
) -> str:
    """Loader source followed by the call that hands it the build index."""
    src = _load_template()
    if production:
        src = _strip_comments(src)
    mode = "production" if production else "development"
    starter = "\n\nelem.start({},{},{},{});\n".format(
        json.dumps(domain),
        json.dumps(basepath or "/"),
        json.dumps(mode),
        json.dumps(index.to_dict()),
    )
    return src + starter


def _strip_comments(src: str) -> str:
    # Only whole-line comments; the template has no string literals spanning them.
    lines = []
    in_block = False
    for line in src.splitlines():
        stripped = line.strip()
        if in_block:
            if stripped.endswith("*/"):
                in_block = False
            continue
        if stripped.startswith("/*"):
            in_block = not stripped.endswith("*/")
            continue
        if stripped.startswith("//") or not stripped:
            continue
        lines.append(stripped)
    return "\n".join(lines)


def static_bootstrap() -> str:
    """Minimal page that lets a build directory be served as a static site."""
    return f'<!DOCTYPE HTML><script src="{LOADER_URL}"></script>'


def boot_page(tag_name: str, loader_src: str = LOADER_URL) -> str:
    """Empty page holding the loader script and the root element."""
    return (
        "<!DOCTYPE html>"
        f'<script src="{loader_src}"></script>'
        f"<{tag_name}></{tag_name}>"
    )
