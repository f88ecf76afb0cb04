from __future__ import annotations

import datetime as dt
import logging

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfTime
from homeassistant.core import HomeAssistant

from .const import (
    DOMAIN,
    ATTR_COMPLETED_CYCLES,
    ATTR_DAYS_SINCE_PERIOD,
    ATTR_HISTORY,
    ATTR_LAST_PERIOD_START,
    ATTR_PREDICTED_NEXT_START,
    ATTR_PREDICTED_OVULATION,
    ATTR_SUMMARY,
    ATTR_TIPS,
    ATTR_TOP_SYMPTOMS,
    INSIGHT_ERROR_MESSAGE,
    PHASE_FOLLICULAR,
    PHASE_LUTEAL,
    PHASE_MENSTRUAL,
    PHASE_OVULATORY,
)
from .entity import LunaTrackerEntity
from .helpers import compute_cycle_stats, symptom_frequency
from .insights import generate_insights

_LOGGER = logging.getLogger(__name__)

SCAN_INTERVAL = dt.timedelta(minutes=15)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    runtime = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            AverageCycleLengthSensor(runtime),
            NextPeriodSensor(runtime),
            CyclePhaseSensor(runtime),
        ],
        True,
    )


def _iso(d: dt.date | None) -> str | None:
    return d.isoformat() if d else None


class AverageCycleLengthSensor(LunaTrackerEntity, SensorEntity):
    """Average cycle length with the derived predictions as attributes."""

    _attr_icon = "mdi:calendar-sync"
    _attr_native_unit_of_measurement = UnitOfTime.DAYS

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "average_cycle_length")
        self._attr_name = "Average cycle length"

    async def async_update(self) -> None:
        stats = self._runtime.stats()
        self._attr_native_value = stats.average_length
        self._attr_extra_state_attributes = {
            ATTR_LAST_PERIOD_START: _iso(stats.last_period_start),
            ATTR_PREDICTED_NEXT_START: _iso(stats.predicted_next_start),
            ATTR_PREDICTED_OVULATION: _iso(stats.predicted_ovulation),
            ATTR_HISTORY: [c.as_dict() for c in stats.history],
            ATTR_COMPLETED_CYCLES: len(stats.history),
        }


class NextPeriodSensor(LunaTrackerEntity, SensorEntity):
    _attr_icon = "mdi:calendar-start"
    _attr_device_class = SensorDeviceClass.DATE

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "next_period")
        self._attr_name = "Next period"

    async def async_update(self) -> None:
        self._attr_native_value = self._runtime.stats().predicted_next_start


class CyclePhaseSensor(LunaTrackerEntity, SensorEntity):
    """Current phase plus the assistant's summary and tips."""

    _attr_icon = "mdi:moon-waning-crescent"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [PHASE_MENSTRUAL, PHASE_FOLLICULAR, PHASE_OVULATORY, PHASE_LUTEAL]

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "cycle_phase")
        self._attr_name = "Cycle phase"

    async def async_update(self) -> None:
        logs = self._runtime.store.get_all()
        try:
            stats = compute_cycle_stats(logs, self._runtime.length_strategy)
            insights = generate_insights(
                logs, stats, self._runtime.user_name, self._runtime.today()
            )
            top_symptoms = dict(symptom_frequency(logs))
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Failed to build insights for %s", self._entry_id)
            self._attr_native_value = None
            self._attr_extra_state_attributes = {
                ATTR_DAYS_SINCE_PERIOD: None,
                ATTR_SUMMARY: INSIGHT_ERROR_MESSAGE,
                ATTR_TIPS: [],
                ATTR_TOP_SYMPTOMS: {},
            }
            return

        self._attr_native_value = insights.phase
        self._attr_extra_state_attributes = {
            ATTR_DAYS_SINCE_PERIOD: insights.days_since_period,
            ATTR_SUMMARY: insights.summary,
            ATTR_TIPS: insights.tips,
            ATTR_TOP_SYMPTOMS: top_symptoms,
        }
