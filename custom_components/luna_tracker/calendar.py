from __future__ import annotations

import datetime as dt
from typing import List, Optional

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util
from homeassistant.components.calendar import CalendarEntity, CalendarEvent

from .const import DOMAIN
from .entity import LunaTrackerEntity
from .helpers import DailyLog, FlowIntensity, compute_cycle_stats, get_day_status

# How far ahead we look when choosing the current/next event for .event
_LOOKAHEAD_DAYS_FOR_EVENT = 60


def _as_local_datetime(d: dt.date | dt.datetime, tz: dt.tzinfo) -> dt.datetime:
    """Return a timezone-aware local datetime for either a date or datetime."""
    if isinstance(d, dt.datetime):
        if d.tzinfo is None:
            return d.replace(tzinfo=tz)
        return d.astimezone(tz)
    # date -> local midnight
    return dt.datetime(d.year, d.month, d.day, tzinfo=tz)


def _period_summary(log: DailyLog) -> str:
    if log.flow is FlowIntensity.NONE:
        return "Period"
    return f"Period ({log.flow})"


def _log_description(log: DailyLog | None) -> str:
    if log is None:
        return ""
    parts = []
    if log.moods:
        parts.append("Moods: " + ", ".join(str(m) for m in log.moods))
    if log.symptoms:
        parts.append("Symptoms: " + ", ".join(str(s) for s in log.symptoms))
    if log.temperature is not None:
        parts.append(f"Temperature: {log.temperature}")
    if log.notes:
        parts.append(log.notes)
    return "\n".join(parts)


class LunaTrackerCalendar(LunaTrackerEntity, CalendarEntity):
    """Calendar with logged period days, predicted period days and ovulation."""

    def __init__(self, runtime) -> None:
        super().__init__(runtime, "calendar")
        self._attr_name = "Calendar"
        self._event: Optional[CalendarEvent] = None

    # ---------- Core Calendar API ----------

    @property
    def event(self) -> CalendarEvent | None:
        """Return the current or next event for HA to show as entity state."""
        return self._event

    async def async_update(self) -> None:
        """Set .event to the current ongoing or next upcoming event."""
        tz = dt_util.get_time_zone(self.hass.config.time_zone)
        now = dt_util.now(tz)
        # Look back a little to catch events that started just before now.
        start = now - dt.timedelta(days=1)
        end = now + dt.timedelta(days=_LOOKAHEAD_DAYS_FOR_EVENT)
        events = await self.async_get_events(self.hass, start, end)

        current: Optional[CalendarEvent] = None
        upcoming: Optional[CalendarEvent] = None
        for ev in events:
            ev_start = _as_local_datetime(ev.start, tz)
            ev_end = _as_local_datetime(ev.end, tz)
            if ev_start <= now < ev_end and current is None:
                current = ev
            if ev_start >= now and upcoming is None:
                upcoming = ev
            if current and upcoming:
                break

        self._event = current or upcoming

    async def async_get_events(
        self,
        hass: HomeAssistant,
        start_date: dt.datetime,
        end_date: dt.datetime,
    ) -> List[CalendarEvent]:
        """Return all-day events between start_date (inclusive) and end_date (exclusive)."""
        tz = dt_util.get_time_zone(hass.config.time_zone)

        # Normalize window to local-aware datetimes
        start_date = start_date.astimezone(tz) if start_date.tzinfo else start_date.replace(tzinfo=tz)
        end_date = end_date.astimezone(tz) if end_date.tzinfo else end_date.replace(tzinfo=tz)

        logs = self._runtime.store.get_all()
        stats = compute_cycle_stats(logs, self._runtime.length_strategy)

        events: List[CalendarEvent] = []
        cur = start_date.date()
        end_d = (end_date - dt.timedelta(seconds=1)).date()
        while cur <= end_d:
            status = get_day_status(cur, logs, stats)
            nxt = cur + dt.timedelta(days=1)
            if status.is_period:
                events.append(
                    CalendarEvent(
                        summary=_period_summary(status.log),
                        start=cur,
                        end=nxt,
                        description=_log_description(status.log),
                    )
                )
            elif status.is_predicted_period:
                events.append(
                    CalendarEvent(
                        summary="Predicted Period",
                        start=cur,
                        end=nxt,
                        description="Predicted period day",
                    )
                )
            if status.is_ovulation:
                events.append(
                    CalendarEvent(
                        summary="Ovulation",
                        start=cur,
                        end=nxt,
                        description="Predicted ovulation day",
                    )
                )
            cur = nxt

        return events


# ---------- Platform setup ----------

async def async_setup_entry(hass: HomeAssistant, entry, async_add_entities):
    """Set up the calendar entity for an entry."""
    runtime = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([LunaTrackerCalendar(runtime)], True)
