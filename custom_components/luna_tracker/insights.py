"""Rule-based wellness tips keyed by cycle phase and recent symptoms."""
from __future__ import annotations

import datetime as dt
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .const import (
    PHASE_FOLLICULAR,
    PHASE_LUTEAL,
    PHASE_MENSTRUAL,
    PHASE_OVULATORY,
)
from .helpers import CycleStats, DailyLog, Symptom, cycle_phase, days_since_period

MAX_TIPS = 4
RECENT_LOGS = 3
MIN_TIPS_BEFORE_FALLBACK = 3

_PHASE_SUMMARIES = {
    PHASE_MENSTRUAL: "you are in your Menstrual phase. Your energy is naturally lower.",
    PHASE_FOLLICULAR: "you are in the Follicular phase. Estrogen is rising, boosting your energy!",
    PHASE_OVULATORY: (
        "you are likely approaching Ovulation. You may feel your most social and confident."
    ),
    PHASE_LUTEAL: (
        "you are in the Luteal phase. Progesterone is dominant, suggesting a time to slow down."
    ),
}

_PHASE_TIPS = {
    PHASE_MENSTRUAL: [
        "**Nutrition**: Focus on iron-rich foods (spinach, lentils) and Vitamin C.",
        "**Movement**: Gentle yoga or walking is best. Avoid high-intensity cardio.",
        "**Rest**: Your body is working hard. Prioritize sleep.",
    ],
    PHASE_FOLLICULAR: [
        "**Exercise**: Great time for HIIT, running, or strength training.",
        "**Creativity**: Your brain is primed for learning and complex tasks.",
        "**Nutrition**: Fermented foods (kimchi, yogurt) support hormone metabolism.",
    ],
    PHASE_OVULATORY: [
        "**Social**: Perfect time for big presentations or social gatherings.",
        "**Energy**: You're at peak performance, but don't overtrain.",
        "**Nutrition**: Cruciferous veggies (broccoli) help manage estrogen spikes.",
    ],
    PHASE_LUTEAL: [
        "**Focus**: Good for wrapping up projects and organizing.",
        "**Cravings**: Dark chocolate provides magnesium to fight fatigue.",
        "**Nutrition**: Complex carbs (oats, sweet potato) help stabilize mood.",
        "**Mindset**: Be gentle with yourself if you feel lower energy.",
    ],
}

# Order matters: tips are appended in this order before shuffling
_SYMPTOM_TIPS = [
    (Symptom.CRAMPS, "**Cramps**: Try a warm bath with Epsom salts or ginger tea."),
    (Symptom.BLOATING, "**Bloating**: Dandelion tea and reducing salt can relieve water retention."),
    (Symptom.INSOMNIA, "**Sleep**: Magnesium glycinate before bed can improve sleep quality."),
    (Symptom.HEADACHE, "**Headache**: Hydrate! Sometimes it's just dehydration."),
    (Symptom.ACNE, "**Skin**: Zinc supplements may help reduce cyclical breakouts."),
]

_FALLBACK_TIPS = [
    "**Hydration**: Aim for 2 liters of water today.",
    "**Journaling**: Tracking your mood helps identify patterns.",
]

NO_DATA_SUMMARY = "start tracking your period to get personalized insights!"
FIRST_PERIOD_TIP = "Log your first period to unlock predictions."


@dataclass
class Insights:
    summary: str
    tips: list[str] = field(default_factory=list)
    phase: str | None = None
    days_since_period: int | None = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "tips": list(self.tips),
            "phase": self.phase,
            "days_since_period": self.days_since_period,
        }


def generate_insights(
    logs: Mapping[dt.date, DailyLog],
    stats: CycleStats,
    user_name: str,
    today: dt.date,
    rng: random.Random | None = None,
) -> Insights:
    days = days_since_period(stats, today)
    phase = cycle_phase(days) if days is not None else None

    summary = f"Hello {user_name}, "
    tips: list[str] = []
    if phase is None:
        summary += NO_DATA_SUMMARY
        tips.append(FIRST_PERIOD_TIP)
    else:
        summary += _PHASE_SUMMARIES[phase]
        tips.extend(_PHASE_TIPS[phase])

    recent = sorted(logs.values(), key=lambda log: log.date, reverse=True)[:RECENT_LOGS]
    recent_symptoms = {s for log in recent for s in log.symptoms}
    tips.extend(tip for symptom, tip in _SYMPTOM_TIPS if symptom in recent_symptoms)

    if len(tips) < MIN_TIPS_BEFORE_FALLBACK:
        tips.extend(_FALLBACK_TIPS)

    (rng or random.Random()).shuffle(tips)
    return Insights(summary=summary, tips=tips[:MAX_TIPS], phase=phase, days_since_period=days)


def reply_to_message(message: str) -> str:
    """Canned answers from the on-device assistant."""
    text = message.lower()
    if "pain" in text or "cramp" in text:
        return (
            "I'm sorry you're in pain. Heat, rest, and hydration are your best friends "
            "right now. If it's severe, please consult a doctor."
        )
    if "happy" in text or "good" in text:
        return "I'm glad to hear that! Keep up the good vibes."
    return (
        "I am a local health assistant. I can help track your cycle and suggest "
        "wellness tips based on your logs!"
    )
