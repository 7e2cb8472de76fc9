"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import symbolsweep.cli as cli
from symbolsweep.service import CacheService

MiB = 1024 * 1024


@pytest.fixture
def runner(cache_dir, settings_path, monkeypatch):
    monkeypatch.setattr(
        cli, "_build_service", lambda: CacheService(cache_dir, settings_path, before_delete=None),
    )
    return CliRunner()


def test_status_json(runner, cache_dir, make_file):
    make_file(cache_dir / "a", 2 * MiB)
    result = runner.invoke(cli.main, ["status", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["total_bytes"] == 2 * MiB
    assert data["state"] == "Normal"
    assert data["last_clean"] == "Never"


def test_status_text(runner):
    result = runner.invoke(cli.main, ["status"])
    assert result.exit_code == 0
    assert "Last cleaned: Never" in result.output


def test_dry_run_truncates_preview(runner, cache_dir, make_file):
    for i in range(8):
        make_file(cache_dir / f"item-{i}", MiB)
    result = runner.invoke(cli.main, ["clean", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "and 3 more" in result.output
    assert "(dry run - no files were deleted)" in result.output
    assert len(list(cache_dir.iterdir())) == 8


def test_clean_json(runner, cache_dir, make_file):
    make_file(cache_dir / "a", MiB)
    result = runner.invoke(cli.main, ["clean", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["items_removed"] == 1
    assert data["was_dry_run"] is False
    assert list(cache_dir.iterdir()) == []


def test_first_clean_asks_for_confirmation(runner, cache_dir, make_file):
    make_file(cache_dir / "a", MiB)

    declined = runner.invoke(cli.main, ["clean"], input="n\n")
    assert "Aborted." in declined.output
    assert (cache_dir / "a").exists()

    accepted = runner.invoke(cli.main, ["clean"], input="y\n")
    assert accepted.exit_code == 0, accepted.output
    assert not (cache_dir / "a").exists()

    shown = runner.invoke(cli.main, ["settings", "show", "--json"])
    assert json.loads(shown.output)["first_clean_confirmed"] is True


def test_settings_set(runner):
    result = runner.invoke(cli.main, ["settings", "set", "auto_clean_on_threshold", "yes"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli.main, ["settings", "set", "monitor_interval_secs", "30"])
    assert result.exit_code == 0, result.output

    data = json.loads(runner.invoke(cli.main, ["settings", "show", "--json"]).output)
    assert data["auto_clean_on_threshold"] is True
    assert data["monitor_interval_secs"] == 30


@pytest.mark.parametrize(
    "args",
    [
        ["settings", "set", "no_such_key", "1"],
        ["settings", "set", "debug_mode", "maybe"],
        ["settings", "set", "monitor_interval_secs", "0"],
        ["settings", "set", "monitor_interval_secs", "often"],
    ],
)
def test_settings_set_rejects_bad_input(runner, args):
    result = runner.invoke(cli.main, args)
    assert result.exit_code == 2


def test_log_shows_audit_entries(runner, cache_dir, make_file):
    make_file(cache_dir / "a", MiB)
    runner.invoke(cli.main, ["clean", "--yes"])
    result = runner.invoke(cli.main, ["log", "-n", "3"])
    assert result.exit_code == 0
    assert len(result.output.splitlines()) == 3
    assert "CLEAN OPERATION COMPLETE" in result.output


def test_last_clean(runner):
    result = runner.invoke(cli.main, ["last-clean"])
    assert result.output.strip() == "Never"


def test_status_combined_includes_system_cache(runner, cache_dir, tmp_path, make_file, monkeypatch):
    system = tmp_path / "system-cache"
    make_file(cache_dir / "a", 2 * MiB)
    make_file(system / "b", 3 * MiB)
    monkeypatch.setenv("SYMBOLSWEEP_SYSTEM_CACHE_DIR", str(system))

    plain = json.loads(runner.invoke(cli.main, ["status", "--json"]).output)
    result = runner.invoke(cli.main, ["status", "--json", "--combined"])

    assert result.exit_code == 0, result.output
    assert plain["total_bytes"] == 2 * MiB
    assert json.loads(result.output)["total_bytes"] == 5 * MiB
