from __future__ import annotations

import datetime as dt

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .entity import LunaTrackerEntity
from .helpers import DayStatus

SCAN_INTERVAL = dt.timedelta(minutes=15)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    runtime = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            PeriodTodayBinary(runtime),
            PredictedPeriodTodayBinary(runtime),
            OvulationTodayBinary(runtime),
        ],
        True,
    )


class _BaseDayStatusBinary(LunaTrackerEntity, BinarySensorEntity):
    """Reflects one flag of today's day status."""

    _attr_is_on = False

    def _flag(self, status: DayStatus) -> bool:
        raise NotImplementedError

    async def async_update(self) -> None:
        status = self._runtime.day_status(self._runtime.today())
        self._attr_is_on = self._flag(status)


class PeriodTodayBinary(_BaseDayStatusBinary):
    _attr_icon = "mdi:water"

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "period_today")
        self._attr_name = "Period today"

    def _flag(self, status: DayStatus) -> bool:
        return status.is_period


class PredictedPeriodTodayBinary(_BaseDayStatusBinary):
    _attr_icon = "mdi:water-outline"

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "predicted_period_today")
        self._attr_name = "Predicted period today"

    def _flag(self, status: DayStatus) -> bool:
        return status.is_predicted_period


class OvulationTodayBinary(_BaseDayStatusBinary):
    _attr_icon = "mdi:egg-outline"

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "ovulation_today")
        self._attr_name = "Ovulation today"

    def _flag(self, status: DayStatus) -> bool:
        return status.is_ovulation
