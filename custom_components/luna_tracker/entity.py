from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceEntryType
from homeassistant.helpers.entity import DeviceInfo, Entity

from .const import DOMAIN

if TYPE_CHECKING:
    from . import EntryRuntime


class LunaTrackerEntity(Entity):
    """Base entity: one device per entry, refreshed whenever logs change."""

    _attr_has_entity_name = True

    def __init__(self, runtime: EntryRuntime, key: str) -> None:
        self._runtime = runtime
        self._entry_id = runtime.entry.entry_id
        self._attr_unique_id = f"{self._entry_id}_{key}"

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, self._entry_id)},
            name=self._runtime.name,
            manufacturer="Custom",
            model="Luna Tracker",
            entry_type=DeviceEntryType.SERVICE,
        )

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(self._runtime.store.async_add_listener(self._handle_logs_changed))

    @callback
    def _handle_logs_changed(self) -> None:
        self.async_schedule_update_ha_state(True)
