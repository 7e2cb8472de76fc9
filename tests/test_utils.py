"""Tests for formatting and directory helpers."""

from __future__ import annotations

import os

from symbolsweep.utils import cache_path, dir_info, format_duration, format_size, time_since

MiB = 1024 * 1024


class TestFormatSize:
    def test_small_units(self):
        assert format_size(0) == "0 B"
        assert format_size(500) == "500 B"
        assert format_size(1024) == "1 KB"
        assert format_size(1048576) == "1 MB"
        assert format_size(500 * MiB) == "500 MB"
        assert format_size(999 * MiB) == "999 MB"

    def test_gigabytes_start_at_1000_mb(self):
        assert format_size(1000 * MiB) == "1 GB"
        assert format_size(1024 * MiB) == "1 GB"
        assert format_size(5 * 1024 * MiB) == "5 GB"
        assert format_size(1536 * MiB) == "1.5 GB"


class TestRelativeTime:
    def test_format_duration(self):
        assert format_duration(1) == "1 second"
        assert format_duration(45) == "45 seconds"
        assert format_duration(60) == "1 minute"
        assert format_duration(7200) == "2 hours"
        assert format_duration(86400 * 3) == "3 days"

    def test_never(self):
        assert time_since(0) == "Never"

    def test_ago(self):
        assert time_since(1_000, now=1_000 + 300) == "5 minutes ago"

    def test_future_timestamp_clamped(self):
        assert time_since(2_000, now=1_000) == "0 seconds ago"


class TestDirInfo:
    def test_counts_non_empty_files(self, tmp_path):
        (tmp_path / "a").write_bytes(b"x" * 100)
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b").write_bytes(b"y" * 50)
        (tmp_path / "sub" / "empty").write_bytes(b"")

        assert dir_info(tmp_path) == (150, 2)

    def test_does_not_follow_symlinks(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "big").write_bytes(b"z" * 1000)
        tree = tmp_path / "tree"
        tree.mkdir()
        os.symlink(outside, tree / "link")

        size, count = dir_info(tree)
        assert size < 1000
        assert count <= 1

    def test_missing_directory(self, tmp_path):
        assert dir_info(tmp_path / "missing") == (0, 0)


def test_cache_path_override(monkeypatch, tmp_path):
    monkeypatch.setenv("SYMBOLSWEEP_CACHE_DIR", str(tmp_path))
    assert cache_path() == tmp_path


def test_cache_path_default(monkeypatch):
    monkeypatch.delenv("SYMBOLSWEEP_CACHE_DIR", raising=False)
    assert cache_path().parts[-3:] == ("Library", "Caches", "com.apple.coresymbolicationd")
