from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY_PREFIX, STORAGE_VERSION
from .helpers import DailyLog, coerce_date

_LOGGER = logging.getLogger(__name__)


class LogStore:
    """Daily logs for one config entry, keyed by date.

    Writes replace a whole day; callers read-modify-write when they only
    change one field. Listeners run after every successful write.
    """

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self.hass = hass
        self._entry_id = entry_id
        self._store: Store[Dict[str, Any]] = Store(
            hass, STORAGE_VERSION, f"{STORAGE_KEY_PREFIX}{entry_id}"
        )
        self._logs: dict[dt.date, DailyLog] = {}
        self._listeners: list[Callable[[], None]] = []

    async def async_load(self) -> None:
        saved = await self._store.async_load()
        if not saved:
            return
        logs: dict[dt.date, DailyLog] = {}
        for raw in saved.get("logs", []):
            try:
                log = DailyLog.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                _LOGGER.warning("Skipping unreadable stored log: %s", raw)
                continue
            logs[log.date] = log
        self._logs = logs
        _LOGGER.debug("Loaded %s daily logs for %s", len(logs), self._entry_id)

    async def _async_save(self) -> None:
        await self._store.async_save(
            {"logs": [log.as_dict() for _, log in sorted(self._logs.items())]}
        )
        _LOGGER.debug("Saved %s daily logs for %s", len(self._logs), self._entry_id)
        self._notify()

    # ---- Reads ----
    def get_all(self) -> dict[dt.date, DailyLog]:
        """Return a snapshot; mutating it or its records does not touch the store."""
        return {day: replace(log) for day, log in self._logs.items()}

    def get(self, day: dt.date | str) -> Optional[DailyLog]:
        log = self._logs.get(coerce_date(day))
        return replace(log) if log is not None else None

    # ---- Writes ----
    async def async_upsert(self, log: DailyLog) -> None:
        self._logs[log.date] = replace(log)
        await self._async_save()

    async def async_remove(self, day: dt.date | str) -> bool:
        if self._logs.pop(coerce_date(day), None) is None:
            return False
        await self._async_save()
        return True

    async def async_clear_all(self) -> None:
        self._logs.clear()
        await self._async_save()

    # ---- Change notification ----
    @callback
    def async_add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        @callback
        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    @callback
    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
