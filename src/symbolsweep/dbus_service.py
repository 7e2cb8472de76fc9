"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "b" and "s" are D-Bus protocol types, not Python syntax. Structured
values travel as JSON strings.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Any

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError
from dbus_next.service import ServiceInterface, method, signal

from symbolsweep.core.errors import CleanerBusyError, InvalidSettingsError, PersistenceError
from symbolsweep.core.events import CACHE_STATUS_UPDATE, CLEAN_COMPLETED, SETTINGS_UPDATED
from symbolsweep.models.settings import Settings
from symbolsweep.service import CacheService

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.symbolsweep"
_OBJECT_PATH = "/io/github/symbolsweep"
_INTERFACE = "io.github.symbolsweep.Monitor"

ERROR_BUSY = "io.github.symbolsweep.Error.Busy"
ERROR_PERSISTENCE = "io.github.symbolsweep.Error.Persistence"
ERROR_INVALID_SETTINGS = "io.github.symbolsweep.Error.InvalidSettings"


# noinspection PyPep8Naming
class SymbolSweepDBusService(ServiceInterface):
    """D-Bus service interface for SymbolSweep.

    Events from the monitor thread are forwarded as signals on the event
    loop that owns the bus connection.
    """

    def __init__(self, service: CacheService, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(_INTERFACE)
        self._service = service
        self._loop = loop
        self._unsubscribe = [
            service.bus.subscribe(CACHE_STATUS_UPDATE, self._forward(self.CacheStatusUpdate)),
            service.bus.subscribe(SETTINGS_UPDATED, self._forward(self.SettingsUpdated)),
            service.bus.subscribe(CLEAN_COMPLETED, self._forward(self.CleanCompleted)),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    def _forward(self, emit):
        def callback(payload: Any) -> None:
            self._loop.call_soon_threadsafe(emit, json.dumps(payload.to_dict()))

        return callback

    @method()
    def GetStatus(self) -> "s":  # type: ignore[override]
        """Measure the cache and return its status as JSON."""
        return json.dumps(self._service.get_status().to_dict())

    @method()
    def GetCombinedStatus(self) -> "s":  # type: ignore[override]
        """Measure the user and system caches together, as JSON."""
        return json.dumps(self._service.get_combined_status().to_dict())

    @method()
    def Clean(self, dry_run: "b") -> "s":  # type: ignore[override]
        """Clean (or preview cleaning) the cache, returning the result as JSON."""
        try:
            result = self._service.clean(dry_run=dry_run)
        except CleanerBusyError as exc:
            raise DBusError(ERROR_BUSY, str(exc)) from exc
        return json.dumps(result.to_dict())

    @method()
    def GetLastCleanTime(self) -> "s":  # type: ignore[override]
        return self._service.get_last_clean_time()

    @method()
    def GetSettings(self) -> "s":  # type: ignore[override]
        return json.dumps(self._service.get_settings().to_dict())

    @method()
    def UpdateSettings(self, settings_json: "s"):  # type: ignore[override]
        """Replace the settings with the JSON object given."""
        try:
            data = json.loads(settings_json)
        except json.JSONDecodeError as exc:
            raise DBusError(ERROR_INVALID_SETTINGS, f"Bad settings JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DBusError(ERROR_INVALID_SETTINGS, "Settings must be a JSON object")
        current = self._service.get_settings()
        known = {f.name for f in dataclasses.fields(Settings)}
        try:
            updated = dataclasses.replace(current, **{k: v for k, v in data.items() if k in known})
            self._service.update_settings(updated)
        except InvalidSettingsError as exc:
            raise DBusError(ERROR_INVALID_SETTINGS, str(exc)) from exc
        except PersistenceError as exc:
            raise DBusError(ERROR_PERSISTENCE, str(exc)) from exc

    @method()
    def GetLogPath(self) -> "s":  # type: ignore[override]
        return self._service.get_log_path()

    @signal()
    def CacheStatusUpdate(self, status_json: str) -> "s":  # type: ignore[override]
        return status_json

    @signal()
    def SettingsUpdated(self, settings_json: str) -> "s":  # type: ignore[override]
        return settings_json

    @signal()
    def CleanCompleted(self, result_json: str) -> "s":  # type: ignore[override]
        return result_json


async def run_service() -> None:
    """Start the D-Bus service and the monitor loop."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = CacheService()
    interface = SymbolSweepDBusService(service, asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, interface)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    service.start()
    try:
        await bus.wait_for_disconnect()
    finally:
        service.stop()
        interface.close()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
