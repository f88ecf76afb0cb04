from __future__ import annotations

DOMAIN = "luna_tracker"

PLATFORMS = ["sensor", "binary_sensor", "calendar"]

STORAGE_VERSION = 1
STORAGE_KEY_PREFIX = "luna_tracker_"

CONF_NAME = "name"
CONF_CYCLE_LENGTH_GOAL = "cycle_length_goal"
CONF_PERIOD_LENGTH_GOAL = "period_length_goal"
CONF_MOOD_CHECK_FREQUENCY = "mood_check_frequency"
CONF_PREDICTION_METHOD = "prediction_method"

DEFAULT_NAME = "Luna Tracker"
DEFAULT_CYCLE_LENGTH_GOAL = 28
DEFAULT_PERIOD_LENGTH_GOAL = 5
DEFAULT_MOOD_CHECK_FREQUENCY = 24  # hours between mood checks, 0 = off
MOOD_CHECK_FREQUENCIES = [0, 1, 24, 168, 720]

PREDICTION_AVERAGE = "average"
PREDICTION_TREND = "trend"
DEFAULT_PREDICTION_METHOD = PREDICTION_AVERAGE

# Cycle engine
DEFAULT_CYCLE_LENGTH = 28
NEW_CYCLE_GAP_DAYS = 14  # gap strictly greater than this starts a new cycle
LUTEAL_DAYS = 14
PREDICTED_PERIOD_DAYS = 4
TREND_WINDOW = 6

# Longest range one day_status websocket call may request
MAX_DAY_STATUS_RANGE_DAYS = 366

# Phase cut points on days since the last period start (upper bounds, exclusive)
PHASE_MENSTRUAL = "menstrual"
PHASE_FOLLICULAR = "follicular"
PHASE_OVULATORY = "ovulatory"
PHASE_LUTEAL = "luteal"
MENSTRUAL_UNTIL = 6
FOLLICULAR_UNTIL = 12
OVULATORY_UNTIL = 17

INSIGHT_ERROR_MESSAGE = "I'm having trouble reading your cycle data right now."

ATTR_LAST_PERIOD_START = "last_period_start"
ATTR_PREDICTED_NEXT_START = "predicted_next_start"
ATTR_PREDICTED_OVULATION = "predicted_ovulation"
ATTR_HISTORY = "history"
ATTR_COMPLETED_CYCLES = "completed_cycles"
ATTR_DAYS_SINCE_PERIOD = "days_since_period"
ATTR_SUMMARY = "summary"
ATTR_TIPS = "tips"
ATTR_TOP_SYMPTOMS = "top_symptoms"
