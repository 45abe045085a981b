"""Core elembuild data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

INDEX_VERSION = 1


@dataclass(slots=True)
class ComponentDescriptor:
    """Named sub-module and its entry file, relative to the source root."""

    name: str
    main: str


@dataclass(slots=True)
class BuildIndex:
    """Manifest of the built tree, as handed to the loader."""

    files: List[str] = field(default_factory=list)
    modules: Dict[str, str] = field(default_factory=dict)
    packages: Dict[str, str] = field(default_factory=dict)
    version: int = INDEX_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "files": list(self.files),
            "modules": dict(self.modules),
            "packages": dict(self.packages),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildIndex":
        version = data.get("version", INDEX_VERSION)
        if version != INDEX_VERSION:
            raise ValueError(f"Unsupported build index version: {version!r}")
        return cls(
            files=list(data.get("files", [])),
            modules=dict(data.get("modules", {})),
            packages=dict(data.get("packages", {})),
            version=version,
        )

    def add_file(self, name: str) -> None:
        """Insert ``name`` keeping ``files`` sorted and duplicate-free."""
        if name not in self.files:
            self.files.append(name)
            self.files.sort()


@dataclass(slots=True)
class BuildStats:
    built: int = 0
    copied: int = 0
    skipped: int = 0
    reused: bool = False
    written: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path | None = None) -> None:
        if status == "built":
            self.built += 1
        elif status == "copied":
            self.copied += 1
        else:
            self.skipped += 1
        if path is not None and status != "skipped":
            self.written.append(path)
