from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict

import voluptuous as vol

from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.config_entries import ConfigEntry
from homeassistant.components import websocket_api
from homeassistant.helpers import config_validation as cv

from .const import (
    DOMAIN,
    PLATFORMS,
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
    PREDICTION_TREND,
    MAX_DAY_STATUS_RANGE_DAYS,
)
from .helpers import (
    CycleStats,
    DailyLog,
    DayStatus,
    FlowIntensity,
    LengthStrategy,
    Mood,
    Symptom,
    compute_cycle_stats,
    get_day_status,
    mean_cycle_length,
    today_local,
    trend_cycle_length,
)
from .insights import reply_to_message
from .store import LogStore

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

SERVICE_LOG_DAY = "log_day"
SERVICE_DELETE_DAY = "delete_day"
SERVICE_CLEAR_ALL_DATA = "clear_all_data"
SERVICE_ASK_ASSISTANT = "ask_assistant"

FLOW_VALUES = [f.value for f in FlowIntensity]
MOOD_VALUES = [m.value for m in Mood]
SYMPTOM_VALUES = [s.value for s in Symptom]

# Shared between the log_day service and the save_log websocket command
LOG_FIELDS = {
    vol.Optional("is_period", default=False): cv.boolean,
    vol.Optional("flow", default=FlowIntensity.NONE.value): vol.In(FLOW_VALUES),
    vol.Optional("moods", default=[]): vol.All(cv.ensure_list, [vol.In(MOOD_VALUES)]),
    vol.Optional("symptoms", default=[]): vol.All(cv.ensure_list, [vol.In(SYMPTOM_VALUES)]),
    vol.Optional("notes"): cv.string,
    vol.Optional("temperature"): vol.Coerce(float),
}

LOG_DAY_SCHEMA = vol.Schema(
    {vol.Optional("entry_id"): cv.string, vol.Optional("date"): cv.date, **LOG_FIELDS}
)
DELETE_DAY_SCHEMA = vol.Schema(
    {vol.Optional("entry_id"): cv.string, vol.Required("date"): cv.date}
)
CLEAR_ALL_SCHEMA = vol.Schema({vol.Optional("entry_id"): cv.string})
ASK_ASSISTANT_SCHEMA = vol.Schema(
    {vol.Optional("entry_id"): cv.string, vol.Required("message"): cv.string}
)

_STRATEGIES: dict[str, LengthStrategy] = {PREDICTION_TREND: trend_cycle_length}


def _log_from_fields(day: dt.date, data: Dict[str, Any]) -> DailyLog:
    return DailyLog(
        date=day,
        is_period=bool(data.get("is_period", False)),
        flow=data.get("flow", FlowIntensity.NONE),
        moods=list(data.get("moods", [])),
        symptoms=list(data.get("symptoms", [])),
        notes=data.get("notes"),
        temperature=data.get("temperature"),
    )


class EntryRuntime:
    """Runtime state per config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        self.hass = hass
        self.entry = entry
        self.store = LogStore(hass, entry.entry_id)

    @property
    def name(self) -> str:
        return self.entry.title or DEFAULT_NAME

    @property
    def user_name(self) -> str:
        return self.entry.data.get(CONF_NAME, self.name)

    @property
    def settings(self) -> Dict[str, Any]:
        o = self.entry.options or {}
        return {
            CONF_CYCLE_LENGTH_GOAL: o.get(CONF_CYCLE_LENGTH_GOAL, DEFAULT_CYCLE_LENGTH_GOAL),
            CONF_PERIOD_LENGTH_GOAL: o.get(CONF_PERIOD_LENGTH_GOAL, DEFAULT_PERIOD_LENGTH_GOAL),
            CONF_MOOD_CHECK_FREQUENCY: o.get(
                CONF_MOOD_CHECK_FREQUENCY, DEFAULT_MOOD_CHECK_FREQUENCY
            ),
            CONF_PREDICTION_METHOD: o.get(CONF_PREDICTION_METHOD, DEFAULT_PREDICTION_METHOD),
        }

    @property
    def length_strategy(self) -> LengthStrategy:
        method = self.settings[CONF_PREDICTION_METHOD]
        return _STRATEGIES.get(method, mean_cycle_length)

    def stats(self) -> CycleStats:
        """Recomputed from a fresh snapshot on every call."""
        return compute_cycle_stats(self.store.get_all(), self.length_strategy)

    def day_status(self, day: dt.date) -> DayStatus:
        logs = self.store.get_all()
        return get_day_status(day, logs, compute_cycle_stats(logs, self.length_strategy))

    def today(self) -> dt.date:
        return today_local(self.hass).date()

    async def async_load(self) -> None:
        await self.store.async_load()

    def export(self) -> Dict[str, Any]:
        logs = self.store.get_all()
        return {
            "name": self.name,
            "settings": self.settings,
            "logs": [log.as_dict() for _, log in sorted(logs.items())],
            "stats": compute_cycle_stats(logs, self.length_strategy).as_dict(),
        }


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    """Set up domain services and the WS API."""

    # ---------- WebSocket API ----------
    websocket_api.async_register_command(hass, ws_discover_entry)
    websocket_api.async_register_command(hass, ws_list_logs)
    websocket_api.async_register_command(hass, ws_save_log)
    websocket_api.async_register_command(hass, ws_delete_log)
    websocket_api.async_register_command(hass, ws_clear_all)
    websocket_api.async_register_command(hass, ws_get_stats)
    websocket_api.async_register_command(hass, ws_day_status)
    websocket_api.async_register_command(hass, ws_export_data)

    # ---------- Domain services ----------
    def _get_runtime_for_service(call: ServiceCall) -> EntryRuntime | None:
        entry_id = call.data.get("entry_id")
        runtime = None
        entries = hass.data.get(DOMAIN, {})
        if entry_id and entry_id in entries:
            runtime = entries[entry_id]
        elif not entry_id and len(entries) == 1:
            runtime = next(iter(entries.values()))
        if runtime is None:
            _LOGGER.warning(
                "luna_tracker service called but entry not found. entry_id=%s",
                entry_id,
            )
        return runtime

    async def _svc_log_day(call: ServiceCall) -> None:
        runtime = _get_runtime_for_service(call)
        if not runtime:
            return
        day = call.data.get("date") or runtime.today()
        await runtime.store.async_upsert(_log_from_fields(day, call.data))

    async def _svc_delete_day(call: ServiceCall) -> None:
        runtime = _get_runtime_for_service(call)
        if not runtime:
            return
        if not await runtime.store.async_remove(call.data["date"]):
            _LOGGER.debug("No log stored for %s", call.data["date"])

    async def _svc_clear_all(call: ServiceCall) -> None:
        runtime = _get_runtime_for_service(call)
        if not runtime:
            return
        await runtime.store.async_clear_all()
        _LOGGER.info("Cleared all daily logs for %s", runtime.entry.entry_id)

    async def _svc_ask_assistant(call: ServiceCall) -> ServiceResponse:
        return {"reply": reply_to_message(call.data["message"])}

    hass.services.async_register(DOMAIN, SERVICE_LOG_DAY, _svc_log_day, schema=LOG_DAY_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_DELETE_DAY, _svc_delete_day, schema=DELETE_DAY_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_CLEAR_ALL_DATA, _svc_clear_all, schema=CLEAR_ALL_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_ASK_ASSISTANT,
        _svc_ask_assistant,
        schema=ASK_ASSISTANT_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    runtime = EntryRuntime(hass, entry)
    await runtime.async_load()
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = runtime

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id, None)
    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Options changed: prediction method or name may differ."""
    await hass.config_entries.async_reload(entry.entry_id)


def _get_runtime(hass: HomeAssistant, connection, msg: Dict[str, Any]) -> EntryRuntime | None:
    runtime = hass.data.get(DOMAIN, {}).get(msg["entry_id"])
    if runtime is None:
        connection.send_error(msg["id"], "not_found", f"Unknown entry_id {msg['entry_id']}")
    return runtime


# ==================== WebSocket API ====================

@websocket_api.websocket_command(
    {vol.Required("type"): "luna_tracker/discover_entry"}
)
@websocket_api.async_response
async def ws_discover_entry(hass: HomeAssistant, connection, msg: Dict[str, Any]):
    """Return the first (or only) entry we have; not admin-only."""
    entries: dict[str, EntryRuntime] = hass.data.get(DOMAIN, {})
    if not entries:
        connection.send_result(msg["id"], {"found": False})
        return
    entry_id, runtime = next(iter(entries.items()))
    connection.send_result(
        msg["id"],
        {"found": True, "entry_id": entry_id, "name": runtime.name},
    )


@websocket_api.websocket_command(
    {vol.Required("type"): "luna_tracker/list_logs", vol.Required("entry_id"): str}
)
@websocket_api.async_response
async def ws_list_logs(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    logs = runtime.store.get_all()
    connection.send_result(
        msg["id"], {"logs": [log.as_dict() for _, log in sorted(logs.items())]}
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "luna_tracker/save_log",
        vol.Required("entry_id"): str,
        vol.Required("date"): cv.date,
        **LOG_FIELDS,
    }
)
@websocket_api.async_response
async def ws_save_log(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    log = _log_from_fields(msg["date"], msg)
    await runtime.store.async_upsert(log)
    connection.send_result(msg["id"], {"ok": True, "log": log.as_dict()})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "luna_tracker/delete_log",
        vol.Required("entry_id"): str,
        vol.Required("date"): cv.date,
    }
)
@websocket_api.async_response
async def ws_delete_log(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    ok = await runtime.store.async_remove(msg["date"])
    connection.send_result(msg["id"], {"ok": ok})


@websocket_api.websocket_command(
    {vol.Required("type"): "luna_tracker/clear_all", vol.Required("entry_id"): str}
)
@websocket_api.async_response
async def ws_clear_all(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    await runtime.store.async_clear_all()
    connection.send_result(msg["id"], {"ok": True})


@websocket_api.websocket_command(
    {vol.Required("type"): "luna_tracker/get_stats", vol.Required("entry_id"): str}
)
@websocket_api.async_response
async def ws_get_stats(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    connection.send_result(msg["id"], runtime.stats().as_dict())


@websocket_api.websocket_command(
    {
        vol.Required("type"): "luna_tracker/day_status",
        vol.Required("entry_id"): str,
        vol.Required("start"): cv.date,
        vol.Required("end"): cv.date,
    }
)
@websocket_api.async_response
async def ws_day_status(hass, connection, msg):
    """Per-day flags for an inclusive date range, e.g. one calendar month."""
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    span = (msg["end"] - msg["start"]).days + 1
    if not 1 <= span <= MAX_DAY_STATUS_RANGE_DAYS:
        connection.send_error(
            msg["id"],
            "invalid_format",
            f"end must not precede start and the range may cover at most {MAX_DAY_STATUS_RANGE_DAYS} days",
        )
        return
    logs = runtime.store.get_all()
    stats = compute_cycle_stats(logs, runtime.length_strategy)
    days = []
    cur = msg["start"]
    while cur <= msg["end"]:
        status = get_day_status(cur, logs, stats)
        days.append(
            {
                "date": cur.isoformat(),
                "is_period": status.is_period,
                "is_predicted_period": status.is_predicted_period,
                "is_ovulation": status.is_ovulation,
                "log": status.log.as_dict() if status.log else None,
            }
        )
        cur += dt.timedelta(days=1)
    connection.send_result(msg["id"], {"days": days})


@websocket_api.websocket_command(
    {vol.Required("type"): "luna_tracker/export_data", vol.Required("entry_id"): str}
)
@websocket_api.async_response
async def ws_export_data(hass, connection, msg):
    if not (runtime := _get_runtime(hass, connection, msg)):
        return
    connection.send_result(msg["id"], runtime.export())
