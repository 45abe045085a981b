"""Converter registry keyed by double-extension patterns."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import markdown
import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from elembuild.utils.paths import extension_key

LOGGER = logging.getLogger(__name__)

ConverterOutput = Union[bytes, str]
Converter = Callable[..., ConverterOutput]


class ConverterRegistry:
    """Instance-owned mapping from extension pattern to converter."""

    def __init__(self, converters: Optional[Mapping[str, Converter]] = None) -> None:
        self._converters: Dict[str, Converter] = {}
        for pattern, fn in (converters or {}).items():
            self.register(pattern, fn)

    def register(self, pattern: str, fn: Converter) -> None:
        """Register ``fn`` for ``pattern`` (e.g. ``.css.styl``), replacing any previous one."""
        if not pattern.startswith("."):
            raise ValueError(f"Extension pattern must start with '.': {pattern!r}")
        if pattern in self._converters:
            LOGGER.debug("Replacing converter for %s", pattern)
        self._converters[pattern] = fn

    def lookup(self, filename: Path | str) -> Optional[Converter]:
        key = extension_key(filename)
        if key is None:
            return None
        return self._converters.get(key)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._converters


def render_jinja(source: bytes, path: Path, locals: Optional[Mapping[str, Any]] = None) -> str:
    """Render a Jinja2 template; includes resolve relative to the template's directory."""
    env = Environment(
        loader=FileSystemLoader(str(Path(path).parent)),
        undefined=StrictUndefined,
        autoescape=False,
    )
    template = env.from_string(source.decode("utf-8"))
    return template.render(**dict(locals or {}))


def render_markdown(source: bytes, path: Path, locals: Optional[Mapping[str, Any]] = None) -> str:
    return markdown.markdown(source.decode("utf-8"), extensions=["extra"])


def yaml_to_json(source: bytes, path: Path, locals: Optional[Mapping[str, Any]] = None) -> str:
    data = yaml.safe_load(source) or {}
    return json.dumps(data, indent=2, sort_keys=True, default=str)


BUILTIN_CONVERTERS: Dict[str, Converter] = {
    ".html.j2": render_jinja,
    ".html.md": render_markdown,
    ".json.yaml": yaml_to_json,
    ".json.yml": yaml_to_json,
}


def default_registry() -> ConverterRegistry:
    """Fresh registry holding the built-in converters."""
    return ConverterRegistry(BUILTIN_CONVERTERS)
