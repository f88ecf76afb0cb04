from __future__ import annotations

import datetime as dt
import math
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from statistics import StatisticsError, linear_regression, mean
from typing import Any, Callable, Dict, Mapping, Sequence

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .const import (
    DEFAULT_CYCLE_LENGTH,
    FOLLICULAR_UNTIL,
    LUTEAL_DAYS,
    MENSTRUAL_UNTIL,
    NEW_CYCLE_GAP_DAYS,
    OVULATORY_UNTIL,
    PHASE_FOLLICULAR,
    PHASE_LUTEAL,
    PHASE_MENSTRUAL,
    PHASE_OVULATORY,
    PREDICTED_PERIOD_DAYS,
    TREND_WINDOW,
)

# ---------------- Utilities ----------------

def _get_local_tz(hass: HomeAssistant) -> dt.tzinfo:
    """Return Home Assistant's configured tzinfo."""
    return dt_util.get_time_zone(hass.config.time_zone)

def today_local(hass: HomeAssistant) -> dt.datetime:
    """Return timezone-aware 'now' in Home Assistant's configured timezone."""
    tz = _get_local_tz(hass)
    return dt_util.now(tz)

def coerce_date(s: str | dt.date | dt.datetime) -> dt.date:
    if isinstance(s, dt.datetime):
        return s.date()
    if isinstance(s, dt.date):
        return s
    return dt.date.fromisoformat(str(s))

def _round_half_up(value: float) -> int:
    # 28.5 -> 29, unlike round()
    return int(math.floor(value + 0.5))

def _unique(items) -> list:
    return list(dict.fromkeys(items))

# ---------------- Categorical fields ----------------

class FlowIntensity(StrEnum):
    NONE = "None"
    LIGHT = "Light"
    MEDIUM = "Medium"
    HEAVY = "Heavy"
    SPOTTING = "Spotting"


class Mood(StrEnum):
    HAPPY = "Happy"
    SENSITIVE = "Sensitive"
    SAD = "Sad"
    IRRITABLE = "Irritable"
    ANXIOUS = "Anxious"
    ENERGETIC = "Energetic"
    TIRED = "Tired"
    CALM = "Calm"


class Symptom(StrEnum):
    CRAMPS = "Cramps"
    HEADACHE = "Headache"
    BLOATING = "Bloating"
    ACNE = "Acne"
    BACKACHE = "Backache"
    INSOMNIA = "Insomnia"
    CRAVINGS = "Cravings"

# ---------------- Data Models ----------------

@dataclass
class DailyLog:
    """Everything the user recorded for one calendar day."""

    date: dt.date
    is_period: bool = False
    flow: FlowIntensity = FlowIntensity.NONE
    moods: list[Mood] = field(default_factory=list)
    symptoms: list[Symptom] = field(default_factory=list)
    notes: str | None = None
    temperature: float | None = None

    def __post_init__(self) -> None:
        self.flow = FlowIntensity(self.flow) if self.is_period else FlowIntensity.NONE
        self.moods = _unique(Mood(m) for m in self.moods)
        self.symptoms = _unique(Symptom(s) for s in self.symptoms)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "is_period": self.is_period,
            "flow": str(self.flow),
            "moods": [str(m) for m in self.moods],
            "symptoms": [str(s) for s in self.symptoms],
            "notes": self.notes,
            "temperature": self.temperature,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "DailyLog":
        temperature = d.get("temperature")
        return DailyLog(
            date=coerce_date(d["date"]),
            is_period=bool(d.get("is_period", False)),
            flow=d.get("flow") or FlowIntensity.NONE,
            moods=list(d.get("moods", [])),
            symptoms=list(d.get("symptoms", [])),
            notes=d.get("notes"),
            temperature=float(temperature) if temperature is not None else None,
        )


@dataclass(frozen=True)
class Cycle:
    start_date: dt.date
    length: int

    def as_dict(self) -> Dict[str, Any]:
        return {"start_date": self.start_date.isoformat(), "length": self.length}


@dataclass(frozen=True)
class CycleStats:
    average_length: int
    last_period_start: dt.date | None
    predicted_next_start: dt.date | None
    predicted_ovulation: dt.date | None
    history: tuple[Cycle, ...] = ()  # newest first, never the open cycle

    def as_dict(self) -> Dict[str, Any]:
        def _iso(d: dt.date | None) -> str | None:
            return d.isoformat() if d else None

        return {
            "average_length": self.average_length,
            "last_period_start": _iso(self.last_period_start),
            "predicted_next_start": _iso(self.predicted_next_start),
            "predicted_ovulation": _iso(self.predicted_ovulation),
            "history": [c.as_dict() for c in self.history],
        }


@dataclass(frozen=True)
class DayStatus:
    is_period: bool
    is_predicted_period: bool
    is_ovulation: bool
    log: DailyLog | None


# Cycles are passed oldest first
LengthStrategy = Callable[[Sequence[Cycle]], int]


def mean_cycle_length(cycles: Sequence[Cycle]) -> int:
    """Rounded mean of completed cycle lengths (28 when there are none)."""
    if not cycles:
        return DEFAULT_CYCLE_LENGTH
    return _round_half_up(mean(c.length for c in cycles))


def trend_cycle_length(cycles: Sequence[Cycle]) -> int:
    """Extrapolate the next length from a straight-line fit of recent cycles.

    Only the last TREND_WINDOW cycles are considered, so an old outlier
    stops influencing the prediction after a few months.
    """
    if len(cycles) < 2:
        return DEFAULT_CYCLE_LENGTH
    recent = [c.length for c in cycles[-TREND_WINDOW:]]
    try:
        slope, intercept = linear_regression(range(len(recent)), recent)
    except StatisticsError:
        return mean_cycle_length(cycles)
    return max(1, _round_half_up(slope * len(recent) + intercept))


def compute_cycle_stats(
    logs: Mapping[dt.date | str, DailyLog],
    length_strategy: LengthStrategy | None = None,
) -> CycleStats:
    """Split logged period days into cycles and predict the next one.

    Period days closer than NEW_CYCLE_GAP_DAYS belong to the same bleed, so
    sparse logging inside one period does not create extra cycles. The most
    recent cycle is still open and only contributes its start date.
    """
    strategy = length_strategy or mean_cycle_length
    period_days = sorted({coerce_date(d) for d, log in logs.items() if log.is_period})

    if not period_days:
        return CycleStats(
            average_length=DEFAULT_CYCLE_LENGTH,
            last_period_start=None,
            predicted_next_start=None,
            predicted_ovulation=None,
        )

    closed: list[Cycle] = []
    current_start = period_days[0]
    for prev, cur in zip(period_days, period_days[1:]):
        if (cur - prev).days > NEW_CYCLE_GAP_DAYS:
            closed.append(Cycle(start_date=current_start, length=(cur - current_start).days))
            current_start = cur

    average = strategy(closed) if closed else DEFAULT_CYCLE_LENGTH

    # Ovulation is anchored to the last start; with average < LUTEAL_DAYS it
    # lands before that start.
    return CycleStats(
        average_length=average,
        last_period_start=current_start,
        predicted_next_start=current_start + dt.timedelta(days=average),
        predicted_ovulation=current_start + dt.timedelta(days=average - LUTEAL_DAYS),
        history=tuple(reversed(closed)),
    )


def _log_on(logs: Mapping[dt.date | str, DailyLog], day: dt.date) -> DailyLog | None:
    # Same keys compute_cycle_stats accepts: dates or ISO strings
    log = logs.get(day)
    if log is None:
        log = logs.get(day.isoformat())
    return log


def get_day_status(
    day: dt.date | str,
    logs: Mapping[dt.date | str, DailyLog],
    stats: CycleStats,
) -> DayStatus:
    d = coerce_date(day)
    log = _log_on(logs, d)

    is_predicted = False
    if stats.predicted_next_start is not None:
        offset = (d - stats.predicted_next_start).days
        is_predicted = 0 <= offset < PREDICTED_PERIOD_DAYS

    return DayStatus(
        is_period=bool(log and log.is_period),
        is_predicted_period=is_predicted,
        is_ovulation=stats.predicted_ovulation is not None and d == stats.predicted_ovulation,
        log=log,
    )

# ---------------- Phases & trends ----------------

def cycle_phase(days_since_period: int) -> str:
    if days_since_period < MENSTRUAL_UNTIL:
        return PHASE_MENSTRUAL
    if days_since_period < FOLLICULAR_UNTIL:
        return PHASE_FOLLICULAR
    if days_since_period < OVULATORY_UNTIL:
        return PHASE_OVULATORY
    return PHASE_LUTEAL


def days_since_period(stats: CycleStats, today: dt.date) -> int | None:
    if stats.last_period_start is None:
        return None
    return abs((today - stats.last_period_start).days)


def current_phase(stats: CycleStats, today: dt.date) -> str | None:
    days = days_since_period(stats, today)
    return cycle_phase(days) if days is not None else None


def symptom_frequency(logs: Mapping[dt.date, DailyLog], limit: int = 5) -> list[tuple[str, int]]:
    """Most common symptoms across all logs, most frequent first."""
    counts: Counter[str] = Counter()
    for log in logs.values():
        counts.update(str(s) for s in log.symptoms)
    return counts.most_common(limit)
