"""Tests for core data models."""

from __future__ import annotations

from pathlib import Path

import pytest

from elembuild.models import BuildIndex, BuildStats, ComponentDescriptor


class TestBuildIndex:
    """Test BuildIndex dataclass."""

    def test_defaults(self) -> None:
        index = BuildIndex()
        assert index.files == []
        assert index.modules == {}
        assert index.packages == {}
        assert index.version == 1

    def test_to_dict(self) -> None:
        index = BuildIndex(files=["a.js"], modules={"w": "components/w/index.js"})
        assert index.to_dict() == {
            "version": 1,
            "files": ["a.js"],
            "modules": {"w": "components/w/index.js"},
            "packages": {},
        }

    def test_from_dict_without_version(self) -> None:
        """Unversioned manifests are read as the current version."""
        index = BuildIndex.from_dict({"files": ["a.js"], "modules": {}, "packages": {}})
        assert index.files == ["a.js"]
        assert index.version == 1

    def test_from_dict_rejects_unknown_version(self) -> None:
        with pytest.raises(ValueError):
            BuildIndex.from_dict({"version": 2, "files": []})

    def test_add_file_keeps_sorted_unique(self) -> None:
        index = BuildIndex(files=["b.js", "d.js"])
        index.add_file("c.js")
        index.add_file("c.js")
        assert index.files == ["b.js", "c.js", "d.js"]

    def test_instances_do_not_share_lists(self) -> None:
        first = BuildIndex()
        first.files.append("a.js")
        assert BuildIndex().files == []


class TestComponentDescriptor:
    """Test ComponentDescriptor dataclass."""

    def test_equality(self) -> None:
        assert ComponentDescriptor("w", "index.js") == ComponentDescriptor("w", "index.js")


class TestBuildStats:
    """Test BuildStats counters."""

    def test_increment(self) -> None:
        stats = BuildStats()
        stats.increment("built", Path("/b/a.css"))
        stats.increment("copied", Path("/b/b.js"))
        stats.increment("skipped")
        stats.increment("skipped", Path("/b/c.js"))

        assert (stats.built, stats.copied, stats.skipped) == (1, 1, 2)
        assert stats.written == [Path("/b/a.css"), Path("/b/b.js")]
        assert stats.reused is False
