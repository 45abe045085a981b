"""Build configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BUILD_DIRNAME = "_build"
IGNORE_PREFIXES = ("_", ".")


def _production_from_env() -> bool:
    value = os.environ.get("ELEMBUILD_PRODUCTION", "")
    return value.strip().lower() in {"1", "true", "yes"}


@dataclass(slots=True)
class BuildConfig:
    source_root: Path = Path(".")
    build_dir: Path | None = None
    production: bool | None = None
    tag_name: str | None = None
    ignore_prefixes: tuple[str, ...] = IGNORE_PREFIXES

    def __post_init__(self) -> None:
        self.source_root = Path(self.source_root)
        if self.build_dir is not None:
            self.build_dir = Path(self.build_dir)
        if self.production is None:
            self.production = _production_from_env()

    def resolve_build_dir(self, base_dir: Path | None = None) -> Path:
        """Return the Build Root, defaulting to ``<source_root>/_build``."""
        if self.build_dir is None:
            return self.source_root / DEFAULT_BUILD_DIRNAME
        if self.build_dir.is_absolute() or base_dir is None:
            return self.build_dir
        return base_dir / self.build_dir

    def resolve_tag_name(self) -> str:
        if self.tag_name:
            return self.tag_name
        return self.source_root.resolve().name or "app"
