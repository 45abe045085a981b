"""Tests for the staleness cache."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from elembuild.errors import CacheError
from elembuild.pipeline.cache import StalenessCache


def _touch(path: Path, seconds: int) -> None:
    ns = seconds * 1_000_000_000
    os.utime(path, ns=(ns, ns))


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "a.js"
    path.write_text("a")
    _touch(path, 1_000)
    return path


class TestLoad:
    """Test loading the persisted table."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        cache = StalenessCache(tmp_path / "last_build.json")
        assert cache.records == {}

    def test_versioned_document(self, tmp_path: Path) -> None:
        path = tmp_path / "last_build.json"
        path.write_text(json.dumps({"version": 1, "records": {"/x/a.js": "5"}}))
        cache = StalenessCache(path)
        assert cache.records == {"/x/a.js": "5"}

    def test_legacy_flat_document(self, tmp_path: Path) -> None:
        path = tmp_path / "last_build.json"
        path.write_text(json.dumps({"/x/a.js": "Mon Jan 01 2024"}))
        cache = StalenessCache(path)
        assert cache.records == {"/x/a.js": "Mon Jan 01 2024"}

    def test_corrupt_file_is_fatal(self, tmp_path: Path) -> None:
        path = tmp_path / "last_build.json"
        path.write_text("{not json")
        with pytest.raises(CacheError):
            StalenessCache(path)

    def test_unknown_version_is_fatal(self, tmp_path: Path) -> None:
        path = tmp_path / "last_build.json"
        path.write_text(json.dumps({"version": 99, "records": {}}))
        with pytest.raises(CacheError):
            StalenessCache(path)

    def test_unreadable_file_is_fatal(self, tmp_path: Path) -> None:
        """A directory in place of the table is not treated as missing."""
        path = tmp_path / "last_build.json"
        path.mkdir()
        with pytest.raises(CacheError):
            StalenessCache(path)


class TestIsOutdated:
    """Test change detection."""

    def test_unknown_file_is_outdated(self, tmp_path: Path, source: Path) -> None:
        cache = StalenessCache(tmp_path / "last_build.json")
        assert cache.is_outdated(source) is True

    def test_converges(self, tmp_path: Path, source: Path) -> None:
        """Reports a change exactly once per modification."""
        cache = StalenessCache(tmp_path / "last_build.json")
        assert cache.is_outdated(source) is True
        assert cache.is_outdated(source) is False

        _touch(source, 2_000)
        assert cache.is_outdated(source) is True
        assert cache.is_outdated(source) is False

    def test_same_timestamp_is_unchanged(self, tmp_path: Path, source: Path) -> None:
        """Content changes with an identical mtime go unnoticed."""
        cache = StalenessCache(tmp_path / "last_build.json")
        cache.is_outdated(source)
        source.write_text("different")
        _touch(source, 1_000)
        assert cache.is_outdated(source) is False

    def test_relative_and_absolute_share_a_record(
        self, tmp_path: Path, source: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cache = StalenessCache(tmp_path / "last_build.json")
        cache.is_outdated(Path("a.js"))
        assert cache.is_outdated(source) is False


class TestRecord:
    """Test explicit stamp recording."""

    def test_is_current_after_record(self, tmp_path: Path, source: Path) -> None:
        cache = StalenessCache(tmp_path / "last_build.json")
        stamp = cache.stamp(source)
        assert not cache.is_current(source, stamp)
        cache.record(source, stamp)
        assert cache.is_current(source, stamp)


class TestSave:
    """Test persistence."""

    def test_round_trip(self, tmp_path: Path, source: Path) -> None:
        path = tmp_path / "build" / "last_build.json"
        cache = StalenessCache(path)
        cache.is_outdated(source)
        cache.save()

        reloaded = StalenessCache(path)
        assert reloaded.is_outdated(source) is False
        assert json.loads(path.read_text())["version"] == 1
