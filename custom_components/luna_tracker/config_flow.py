from __future__ import annotations

from typing import Any, Dict

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry, OptionsFlow
from homeassistant.core import callback
from homeassistant.helpers.selector import (
    TextSelector,
    TextSelectorConfig,
    NumberSelector,
    NumberSelectorConfig,
    NumberSelectorMode,
    SelectSelector,
    SelectSelectorConfig,
    SelectOptionDict,
)

from .const import (
    DOMAIN,
    CONF_NAME,
    CONF_CYCLE_LENGTH_GOAL,
    CONF_PERIOD_LENGTH_GOAL,
    CONF_MOOD_CHECK_FREQUENCY,
    CONF_PREDICTION_METHOD,
    DEFAULT_NAME,
    DEFAULT_CYCLE_LENGTH_GOAL,
    DEFAULT_PERIOD_LENGTH_GOAL,
    DEFAULT_MOOD_CHECK_FREQUENCY,
    DEFAULT_PREDICTION_METHOD,
    MOOD_CHECK_FREQUENCIES,
    PREDICTION_AVERAGE,
    PREDICTION_TREND,
)

_MOOD_CHECK_LABELS = {
    0: "Off",
    1: "Every hour",
    24: "Once a day",
    168: "Once a week",
    720: "Once a month",
}


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle the config flow."""

    VERSION = 1

    async def async_step_user(self, user_input: Dict[str, Any] | None = None):
        if user_input is None:
            schema = vol.Schema(
                {
                    vol.Required(CONF_NAME, default=DEFAULT_NAME): TextSelector(
                        TextSelectorConfig(type="text")
                    ),
                }
            )
            return self.async_show_form(step_id="user", data_schema=schema)

        # Single user, single local log store
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        name = user_input[CONF_NAME]
        return self.async_create_entry(
            title=name,
            data={CONF_NAME: name},
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(OptionsFlow):
    """Options for Luna Tracker."""

    def __init__(self, config_entry: ConfigEntry) -> None:
        # Do NOT assign to self.config_entry (deprecated in 2025.12)
        self._entry = config_entry

    async def async_step_init(self, user_input: Dict[str, Any] | None = None):
        if user_input is not None:
            # Selectors hand back floats/strings; store plain ints
            user_input[CONF_CYCLE_LENGTH_GOAL] = int(
                user_input.get(CONF_CYCLE_LENGTH_GOAL, DEFAULT_CYCLE_LENGTH_GOAL)
            )
            user_input[CONF_PERIOD_LENGTH_GOAL] = int(
                user_input.get(CONF_PERIOD_LENGTH_GOAL, DEFAULT_PERIOD_LENGTH_GOAL)
            )
            user_input[CONF_MOOD_CHECK_FREQUENCY] = int(
                user_input.get(CONF_MOOD_CHECK_FREQUENCY, DEFAULT_MOOD_CHECK_FREQUENCY)
            )
            return self.async_create_entry(title="", data=user_input)

        o = self._entry.options or {}

        mood_options = [
            SelectOptionDict(label=_MOOD_CHECK_LABELS[h], value=str(h))
            for h in MOOD_CHECK_FREQUENCIES
        ]
        method_options = [
            SelectOptionDict(label="Average of past cycles", value=PREDICTION_AVERAGE),
            SelectOptionDict(label="Recent trend", value=PREDICTION_TREND),
        ]

        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_CYCLE_LENGTH_GOAL,
                    default=o.get(CONF_CYCLE_LENGTH_GOAL, DEFAULT_CYCLE_LENGTH_GOAL),
                ): NumberSelector(
                    NumberSelectorConfig(min=15, max=60, step=1, mode=NumberSelectorMode.BOX)
                ),
                vol.Optional(
                    CONF_PERIOD_LENGTH_GOAL,
                    default=o.get(CONF_PERIOD_LENGTH_GOAL, DEFAULT_PERIOD_LENGTH_GOAL),
                ): NumberSelector(
                    NumberSelectorConfig(min=1, max=14, step=1, mode=NumberSelectorMode.BOX)
                ),
                # Display-only: stored and exported, nothing schedules mood checks
                vol.Optional(
                    CONF_MOOD_CHECK_FREQUENCY,
                    default=str(
                        o.get(CONF_MOOD_CHECK_FREQUENCY, DEFAULT_MOOD_CHECK_FREQUENCY)
                    ),
                ): SelectSelector(SelectSelectorConfig(options=mood_options, mode="dropdown")),
                vol.Optional(
                    CONF_PREDICTION_METHOD,
                    default=o.get(CONF_PREDICTION_METHOD, DEFAULT_PREDICTION_METHOD),
                ): SelectSelector(SelectSelectorConfig(options=method_options, mode="list")),
            }
        )

        return self.async_show_form(step_id="init", data_schema=schema)
