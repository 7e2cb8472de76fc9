"""Control of the daemon that owns the cache directory."""

from __future__ import annotations

import logging
import subprocess

from symbolsweep.utils import has_command

log = logging.getLogger(__name__)

DAEMON_NAME = "coresymbolicationd"

# Timeout for pgrep/killall (seconds).
_COMMAND_TIMEOUT = 10


class DaemonError(Exception):
    """Raised when the daemon could not be stopped."""


def is_daemon_running(name: str = DAEMON_NAME) -> bool:
    """Check whether a process named *name* is running."""
    if not has_command("pgrep"):
        return False
    try:
        proc = subprocess.run(["pgrep", "-x", name], capture_output=True, timeout=_COMMAND_TIMEOUT)
    except (OSError, subprocess.TimeoutExpired):
        log.debug("pgrep failed for %s", name, exc_info=True)
        return False
    return proc.returncode == 0


def stop_daemon(name: str = DAEMON_NAME) -> None:
    """Kill *name* so it releases its cache files before deletion.

    ``killall`` exits with 1 when no process matched, which is fine:
    the daemon simply was not running.

    Raises:
        DaemonError: killall is missing or reported a real failure.
    """
    if not has_command("killall"):
        raise DaemonError("killall is not available")
    try:
        proc = subprocess.run(
            ["killall", "-9", name], capture_output=True, text=True, timeout=_COMMAND_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise DaemonError(f"Failed to run killall: {exc}") from exc

    if proc.returncode not in (0, 1):
        raise DaemonError(proc.stderr.strip() or f"killall exited with {proc.returncode}")
    if proc.returncode == 0:
        log.info("Stopped %s daemon", name)
