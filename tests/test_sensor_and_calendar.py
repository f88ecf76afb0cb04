from __future__ import annotations

import datetime as dt
from unittest.mock import patch

import pytest
from freezegun import freeze_time
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_component import async_update_entity
from homeassistant.util import dt as dt_util

from custom_components.luna_tracker.const import DOMAIN, INSIGHT_ERROR_MESSAGE
from custom_components.luna_tracker.helpers import DailyLog

pytestmark = pytest.mark.asyncio

D = dt.date.fromisoformat

AVG_SENSOR = "sensor.luna_tracker_average_cycle_length"
NEXT_SENSOR = "sensor.luna_tracker_next_period"
PHASE_SENSOR = "sensor.luna_tracker_cycle_phase"
PERIOD_BINARY = "binary_sensor.luna_tracker_period_today"
PREDICTED_BINARY = "binary_sensor.luna_tracker_predicted_period_today"
OVULATION_BINARY = "binary_sensor.luna_tracker_ovulation_today"
CALENDAR = "calendar.luna_tracker_calendar"


def _coerce_tz(hass: HomeAssistant) -> dt.tzinfo:
    """Return a tzinfo object regardless of how HA stores time_zone (str or tzinfo)."""
    tz = getattr(hass.config, "time_zone", None)
    if isinstance(tz, dt.tzinfo):
        return tz
    return dt_util.get_time_zone(str(tz)) or dt_util.UTC


async def _log_two_periods(hass: HomeAssistant, config_entry) -> None:
    runtime = hass.data[DOMAIN][config_entry.entry_id]
    for day in ("2024-01-01", "2024-01-02", "2024-01-29", "2024-01-30"):
        await runtime.store.async_upsert(
            DailyLog(date=D(day), is_period=True, flow="Medium", symptoms=["Cramps"])
        )
    await hass.async_block_till_done()


async def _refresh(hass: HomeAssistant, *entity_ids: str) -> None:
    for entity_id in entity_ids:
        await async_update_entity(hass, entity_id)
    await hass.async_block_till_done()


async def test_zero_state_sensors(hass: HomeAssistant, setup_integration):
    assert hass.states.get(AVG_SENSOR).state == "28"
    assert hass.states.get(AVG_SENSOR).attributes["history"] == []
    assert hass.states.get(NEXT_SENSOR).state == "unknown"
    phase = hass.states.get(PHASE_SENSOR)
    assert phase.state == "unknown"
    assert "start tracking your period" in phase.attributes["summary"]


async def test_sensor_states_follow_logged_periods(hass: HomeAssistant, setup_integration, config_entry):
    await _log_two_periods(hass, config_entry)

    with freeze_time("2024-02-12 20:00:00"):
        await _refresh(
            hass, AVG_SENSOR, NEXT_SENSOR, PHASE_SENSOR,
            PERIOD_BINARY, PREDICTED_BINARY, OVULATION_BINARY,
        )

        avg = hass.states.get(AVG_SENSOR)
        assert avg.state == "28"
        assert avg.attributes["last_period_start"] == "2024-01-29"
        assert avg.attributes["predicted_next_start"] == "2024-02-26"
        assert avg.attributes["predicted_ovulation"] == "2024-02-12"
        assert avg.attributes["history"] == [{"start_date": "2024-01-01", "length": 28}]
        assert avg.attributes["completed_cycles"] == 1

        assert hass.states.get(NEXT_SENSOR).state == "2024-02-26"

        phase = hass.states.get(PHASE_SENSOR)
        assert phase.state == "ovulatory"
        assert phase.attributes["days_since_period"] == 14
        assert phase.attributes["summary"].startswith("Hello Luna, ")
        assert phase.attributes["top_symptoms"] == {"Cramps": 4}

        assert hass.states.get(PERIOD_BINARY).state == "off"
        assert hass.states.get(PREDICTED_BINARY).state == "off"
        assert hass.states.get(OVULATION_BINARY).state == "on"

    with freeze_time("2024-02-27 20:00:00"):
        await _refresh(hass, PREDICTED_BINARY, OVULATION_BINARY)
        assert hass.states.get(PREDICTED_BINARY).state == "on"
        assert hass.states.get(OVULATION_BINARY).state == "off"


async def test_entities_refresh_when_logs_change(hass: HomeAssistant, setup_integration, config_entry):
    assert hass.states.get(NEXT_SENSOR).state == "unknown"
    await _log_two_periods(hass, config_entry)
    assert hass.states.get(NEXT_SENSOR).state == "2024-02-26"


async def test_phase_sensor_reports_apology_on_failure(hass: HomeAssistant, setup_integration, config_entry):
    await _log_two_periods(hass, config_entry)
    with patch(
        "custom_components.luna_tracker.sensor.generate_insights",
        side_effect=ValueError("broken settings"),
    ):
        await _refresh(hass, PHASE_SENSOR)

    state = hass.states.get(PHASE_SENSOR)
    assert state.state == "unknown"
    assert state.attributes["summary"] == INSIGHT_ERROR_MESSAGE
    assert state.attributes["tips"] == []


async def test_calendar_events_per_day(hass: HomeAssistant, setup_integration, config_entry):
    await _log_two_periods(hass, config_entry)
    runtime = hass.data[DOMAIN][config_entry.entry_id]
    await runtime.store.async_upsert(
        DailyLog(date=D("2024-02-05"), moods=["Happy"], notes="walked 5k")
    )
    await hass.async_block_till_done()

    component = hass.data["entity_components"]["calendar"]
    cal_entity = component.get_entity(CALENDAR)
    assert cal_entity is not None

    tz = _coerce_tz(hass)
    events = await cal_entity.async_get_events(
        hass,
        dt.datetime(2024, 1, 28, tzinfo=tz),
        dt.datetime(2024, 3, 2, tzinfo=tz),
    )
    by_kind: dict[str, list[dt.date]] = {}
    for ev in events:
        by_kind.setdefault(ev.summary, []).append(ev.start)
        assert ev.end == ev.start + dt.timedelta(days=1)

    assert by_kind["Period (Medium)"] == [D("2024-01-29"), D("2024-01-30")]
    assert by_kind["Ovulation"] == [D("2024-02-12")]
    assert by_kind["Predicted Period"] == [
        D("2024-02-26"),
        D("2024-02-27"),
        D("2024-02-28"),
        D("2024-02-29"),
    ]
    # Non-period logs are not calendar events
    assert set(by_kind) == {"Period (Medium)", "Ovulation", "Predicted Period"}

    period_event = next(ev for ev in events if ev.start == D("2024-01-29"))
    assert period_event.description == "Symptoms: Cramps"


async def test_phase_sensor_reports_apology_when_symptom_count_fails(
    hass: HomeAssistant, setup_integration, config_entry
):
    await _log_two_periods(hass, config_entry)
    with patch(
        "custom_components.luna_tracker.sensor.symptom_frequency",
        side_effect=TypeError("bad symptom"),
    ):
        await _refresh(hass, PHASE_SENSOR)

    state = hass.states.get(PHASE_SENSOR)
    assert state.state == "unknown"
    assert state.attributes["summary"] == INSIGHT_ERROR_MESSAGE
    assert state.attributes["top_symptoms"] == {}
