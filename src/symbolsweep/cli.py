"""CLI interface for SymbolSweep."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
import time

import click

from symbolsweep import storage
from symbolsweep.core.errors import CleanerBusyError, InvalidSettingsError, PersistenceError
from symbolsweep.core.events import (
    AUTO_CLEAN_FAILED,
    AUTO_CLEAN_TRIGGERED,
    CACHE_STATE_CHANGED,
    CACHE_STATUS_UPDATE,
    CLEAN_COMPLETED,
)
from symbolsweep.models.clean_result import CleanResult
from symbolsweep.models.settings import Settings
from symbolsweep.models.status import CacheState, CacheStatus
from symbolsweep.service import CacheService
from symbolsweep.utils import format_size

# Dry-run previews list this many items before summarising the rest.
_PREVIEW_ITEMS = 5

_STATE_COLORS = {
    CacheState.NORMAL: "green",
    CacheState.WARNING: "yellow",
    CacheState.CRITICAL: "red",
}

_SAFETY_NOTICE = (
    "SymbolSweep only deletes the contents of the symbolication cache.\n"
    "macOS rebuilds this cache automatically; none of your documents are touched."
)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_service() -> CacheService:
    return CacheService()


def _echo_status(status: CacheStatus) -> None:
    if not status.exists:
        click.echo(f"  {click.style('·', fg='bright_black')} Cache not found at {status.target_path}")
        return
    color = _STATE_COLORS[status.state]
    click.echo(
        f"  {click.style('●', fg=color)} {click.style(status.size_display, fg=color, bold=True)}"
        f"  {status.state.value}  ({status.item_count:,} files)"
    )
    click.echo(f"    {status.target_path}")


def _echo_result(result: CleanResult) -> None:
    if not result.success:
        click.echo(f"  {click.style('✗', fg='red')} {result.message}")
        return
    if result.was_dry_run:
        for item in result.items_found[:_PREVIEW_ITEMS]:
            kind = "dir " if item.is_directory else "file"
            click.echo(f"    {kind}  {format_size(item.size_bytes):>8s}  {item.path}")
        hidden = len(result.items_found) - _PREVIEW_ITEMS
        if hidden > 0:
            click.echo(f"    … and {hidden:,} more")
        click.echo(f"\n{result.message}")
        click.echo("(dry run - no files were deleted)")
        return

    mark = click.style("!", fg="yellow") if result.errors else click.style("✓", fg="green")
    click.echo(f"  {mark} {result.message}")
    for error in result.errors:
        click.echo(f"    {click.style(error, fg='yellow')}")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """SymbolSweep: keep the coresymbolicationd cache in check."""
    _setup_logging(verbose)


# ── status ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--combined", is_flag=True, help="Include the system-wide cache in the size")
def status(as_json: bool, combined: bool) -> None:
    """Measure the cache and show its state."""
    service = _build_service()
    current = service.get_combined_status() if combined else service.get_status()

    if as_json:
        data = current.to_dict()
        data["last_clean"] = service.get_last_clean_time()
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    _echo_status(current)
    click.echo(f"\n  Last cleaned: {service.get_last_clean_time()}")
    if service.get_settings().debug_mode:
        click.echo(click.style("  (debug mode: simulated size)", fg="magenta"))
    click.echo()


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without deleting it")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(dry_run: bool, yes: bool, as_json: bool) -> None:
    """Delete the cache contents (or preview with --dry-run)."""
    service = _build_service()

    if not dry_run and not yes and not as_json:
        settings = service.get_settings()
        if not settings.first_clean_confirmed:
            click.echo(f"\n{_SAFETY_NOTICE}\n")
            if not click.confirm("Continue?", default=False):
                click.echo("Aborted.")
                return
            try:
                service.update_settings(dataclasses.replace(settings, first_clean_confirmed=True))
            except PersistenceError as exc:
                click.echo(f"Warning: {exc}", err=True)
        elif not click.confirm("Clean the cache now?", default=False):
            click.echo("Aborted.")
            return

    if not as_json:
        icon = "🔍" if dry_run else "🧹"
        click.echo(f"\n{click.style(icon, bold=True)} {'Analyzing' if dry_run else 'Cleaning'}...\n")

    try:
        result = service.clean(dry_run=dry_run)
    except CleanerBusyError as exc:
        if as_json:
            click.echo(json.dumps({"status": "busy", "message": str(exc)}))
        else:
            click.echo(str(exc), err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _echo_result(result)
        click.echo()
    if not result.success:
        sys.exit(1)


# ── last-clean ───────────────────────────────────────────────────────────

@main.command("last-clean")
def last_clean() -> None:
    """Show when the cache was last cleaned."""
    click.echo(_build_service().get_last_clean_time())


# ── settings ─────────────────────────────────────────────────────────────

@main.group()
def settings() -> None:
    """View and change settings."""


@settings.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def settings_show(as_json: bool) -> None:
    """Show all settings."""
    current = _build_service().get_settings()
    if as_json:
        click.echo(json.dumps(current.to_dict(), indent=2))
        return
    for key, value in current.to_dict().items():
        click.echo(f"  {click.style(key, fg='cyan'):40s} {value}")


@settings.command("set")
@click.argument("key")
@click.argument("value")
def settings_set(key: str, value: str) -> None:
    """Change a single setting, e.g. `settings set auto_clean_on_threshold true`."""
    service = _build_service()
    current = service.get_settings()
    if key not in current.to_dict():
        raise click.BadParameter(f"Unknown setting '{key}'", param_hint="KEY")

    parsed = _parse_value(getattr(current, key), value)
    try:
        service.update_settings(dataclasses.replace(current, **{key: parsed}))
    except InvalidSettingsError as exc:
        raise click.BadParameter(str(exc), param_hint="VALUE") from exc
    except PersistenceError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    click.echo(f"{key} = {parsed}")


def _parse_value(current: bool | int, raw: str) -> bool | int:
    if isinstance(current, bool):
        match raw.lower():
            case "true" | "yes" | "on" | "1":
                return True
            case "false" | "no" | "off" | "0":
                return False
            case _:
                raise click.BadParameter(f"Expected true/false, got '{raw}'", param_hint="VALUE")
    try:
        return int(raw)
    except ValueError:
        raise click.BadParameter(f"Expected an integer, got '{raw}'", param_hint="VALUE") from None


# ── log ──────────────────────────────────────────────────────────────────

@main.command("log")
@click.option("--lines", "-n", default=20, show_default=True, help="Number of lines to show")
def log_cmd(lines: int) -> None:
    """Show the end of the deletion audit log."""
    entries = storage.read_audit(lines)
    if not entries:
        click.echo(f"No entries in {storage.AUDIT_LOG}")
        return
    for line in entries:
        click.echo(line)


# ── monitor ──────────────────────────────────────────────────────────────

@main.command()
def monitor() -> None:
    """Run the monitor in the foreground, printing events until Ctrl+C."""
    service = _build_service()
    bus = service.bus

    def on_status(current: CacheStatus) -> None:
        stamp = time.strftime("%H:%M:%S", time.localtime(current.measured_at))
        click.echo(f"[{stamp}]", nl=False)
        _echo_status(current)

    bus.subscribe(CACHE_STATUS_UPDATE, on_status)
    bus.subscribe(CACHE_STATE_CHANGED, lambda s: click.echo(f"  State is now {s.state.value}"))
    bus.subscribe(AUTO_CLEAN_TRIGGERED, lambda t: click.echo(f"  Auto-clean triggered ({t.value})"))
    bus.subscribe(AUTO_CLEAN_FAILED, lambda msg: click.echo(click.style(f"  Auto-clean failed: {msg}", fg="red")))
    bus.subscribe(CLEAN_COMPLETED, _echo_result)

    interval = service.get_settings().monitor_interval_secs
    click.echo(f"Monitoring {service.target} every {interval}s (Ctrl+C to stop)\n")
    service.start()
    try:
        while service.monitor.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from symbolsweep.dbus_service import start_service

    click.echo("Starting SymbolSweep D-Bus service...")
    start_service()
