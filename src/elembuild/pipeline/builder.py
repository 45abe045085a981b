"""Incremental build orchestration."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from elembuild.config import BuildConfig
from elembuild.errors import ConverterError
from elembuild.models import BuildIndex, BuildStats
from elembuild.pipeline.cache import CACHE_FILENAME, StalenessCache
from elembuild.pipeline.components import in_components_dir, is_descriptor, parse_component
from elembuild.pipeline.converters import Converter, ConverterRegistry, default_registry
from elembuild.pipeline.packer import bundle_groups, pack
from elembuild.utils.files import iter_source_files, write_bytes
from elembuild.utils.paths import extension_key, normalize, to_build_path, to_index_name
from elembuild.web.loader import generate_loader_js, static_bootstrap

LOGGER = logging.getLogger(__name__)

AUTOLOAD_EXTENSIONS = (".css", ".html", ".js")
INDEX_FILENAME = "index.json"
BOOTSTRAP_FILENAME = "index.html"
LOADER_FILENAME = "loader.js"


class Builder:
    """Builds a source tree into its mirrored build directory.

    Owns the converter registry, the staleness cache and the table mapping
    artifacts back to their sources for the lifetime of the instance.
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        converters: Optional[ConverterRegistry] = None,
        locals: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.config = config
        self.source_root = normalize(config.source_root)
        self.build_root = normalize(config.resolve_build_dir())
        self.production = bool(config.production)
        self.tag_name = config.resolve_tag_name()
        self.converters = converters if converters is not None else default_registry()
        self.locals = dict(locals or {})
        self.cache = StalenessCache(self.build_root / CACHE_FILENAME)
        self.index = BuildIndex()
        self._sources: Dict[Path, Path] = {}

    @property
    def cache_path(self) -> Path:
        return self.build_root / CACHE_FILENAME

    @property
    def index_path(self) -> Path:
        return self.build_root / INDEX_FILENAME

    def prep(self, pattern: str, fn: Converter) -> None:
        """Register a converter for a ``.to.from`` extension pattern."""
        self.converters.register(pattern, fn)

    def build_path(self, source: Path | str, trim_extension: bool = False) -> Path:
        return to_build_path(source, self.source_root, self.build_root, trim_extension)

    def source_for(self, artifact: Path | str) -> Optional[Path]:
        """Source file an artifact was produced from, if built by this instance."""
        return self._sources.get(normalize(artifact))

    def build_file(self, path: Path | str, stats: Optional[BuildStats] = None) -> Optional[Path]:
        """Bring the artifact of one source file up to date and return its path."""
        source = normalize(path)
        if source.is_dir():
            return None
        source = self._sources.get(source, source)

        key = extension_key(source)
        converter = self.converters.lookup(source)
        target = self.build_path(source, trim_extension=converter is not None)

        stamp = self.cache.stamp(source)
        if self.cache.is_current(source, stamp) and target.exists():
            LOGGER.debug("Up to date: %s", target)
            if stats is not None:
                stats.increment("skipped")
            return target

        data = source.read_bytes()
        if converter is not None:
            try:
                output = converter(data, source, self.locals)
            except Exception as exc:
                raise ConverterError(source, key or "", exc) from exc
            if isinstance(output, str):
                output = output.encode("utf-8")
            if not isinstance(output, (bytes, bytearray)):
                cause = TypeError(f"expected bytes or str, got {type(output).__name__}")
                raise ConverterError(source, key or "", cause)
            status = "built"
        else:
            output = data
            status = "copied"

        write_bytes(target, output)
        self._sources[target] = source
        self.cache.record(source, stamp)
        if status == "built":
            LOGGER.info("built %s", target)
        else:
            LOGGER.debug("copied %s", target)
        if stats is not None:
            stats.increment(status, target)
        return target

    def _reuse_existing(self) -> bool:
        if not (self.production and self.cache_path.exists()):
            return False
        LOGGER.info("Existing build detected in %s. Using it.", self.build_root)
        if self.index_path.exists():
            self.index = self.load_index()
        return True

    def _clean(self) -> None:
        if self.build_root.exists():
            LOGGER.info("Removing %s for a clean production build", self.build_root)
            shutil.rmtree(self.build_root)
        self.cache.clear()
        self._sources.clear()

    def build(self) -> BuildStats:
        """Build the whole source tree and persist the index and staleness table."""
        stats = BuildStats()
        if self._reuse_existing():
            stats.reused = True
            return stats

        if self.production:
            self._clean()

        modules: Dict[str, str] = {}
        candidates: List[Path] = []
        for path in iter_source_files(
            self.source_root,
            ignore_prefixes=self.config.ignore_prefixes,
            exclude=[self.build_root],
        ):
            if is_descriptor(path):
                if in_components_dir(path, self.source_root):
                    component = parse_component(path, self.source_root)
                    modules[component.name] = component.main
                else:
                    LOGGER.debug("Ignoring descriptor outside components/: %s", path)
                continue
            candidates.append(path)

        built = [self.build_file(path, stats) for path in candidates]

        files: List[str] = []
        for target in built:
            if not target or target.suffix not in AUTOLOAD_EXTENSIONS:
                continue
            name = to_index_name(target, self.build_root)
            if name not in files:
                files.append(name)
        files.sort()

        index = BuildIndex(files=files, modules=modules, packages={})
        if self.production:
            bundle_groups(self.build_root, index)

        self.index = index
        self.write_index()
        self.cache.save()
        if BOOTSTRAP_FILENAME not in index.files:
            self.build_static_bootstrap()
        LOGGER.info(
            "Build finished: %d built, %d copied, %d up to date",
            stats.built,
            stats.copied,
            stats.skipped,
        )
        return stats

    def write_index(self) -> None:
        self.build_root.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(json.dumps(self.index.to_dict()), encoding="utf-8")

    def load_index(self) -> BuildIndex:
        return BuildIndex.from_dict(json.loads(self.index_path.read_text(encoding="utf-8")))

    def pack(self, files: List[str]) -> str:
        """Pack already-built files, named relative to the build root."""
        return pack(self.build_root, files)

    def build_static_bootstrap(self) -> Path:
        target = self.build_root / BOOTSTRAP_FILENAME
        write_bytes(target, static_bootstrap().encode("utf-8"))
        return target

    def generate_loader_js(self, domain: str, basepath: str = "/") -> str:
        return generate_loader_js(self.index, domain, basepath, production=self.production)

    def build_loader(self, domain: str, basepath: str = "/") -> Path:
        target = self.build_root / LOADER_FILENAME
        write_bytes(target, self.generate_loader_js(domain, basepath).encode("utf-8"))
        return target
