"""Exceptions raised by the build pipeline."""

from __future__ import annotations

from pathlib import Path


class ElemBuildError(RuntimeError):
    """Base class for errors that abort a build."""


class CacheError(ElemBuildError):
    """The staleness table on disk could not be read."""


class DescriptorError(ElemBuildError):
    """A component descriptor is unreadable or malformed."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ConverterError(ElemBuildError):
    """A registered converter raised while transforming a source file."""

    def __init__(self, source: Path, key: str, cause: BaseException) -> None:
        super().__init__(f"{key} converter failed for {source}: {cause}")
        self.source = source
        self.key = key
        self.cause = cause


class BundleError(ElemBuildError):
    """A production bundle collides with a built file."""
