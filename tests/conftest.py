from __future__ import annotations

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry
from homeassistant.core import HomeAssistant

from custom_components.luna_tracker.const import CONF_NAME

# ----- constants -----
INTEGRATION_DOMAIN = "luna_tracker"
ENTRY_TITLE = "Luna Tracker"


# 1) Enable custom integrations only for tests that run against Home Assistant
@pytest.fixture(autouse=True)
def _enable_custom_integrations(request):
    if "hass" in request.fixturenames:
        request.getfixturevalue("enable_custom_integrations")
    yield


# 2) Standard entry + setup fixtures for your tests
@pytest.fixture
def config_entry(hass: HomeAssistant) -> MockConfigEntry:
    entry = MockConfigEntry(
        domain=INTEGRATION_DOMAIN,
        data={CONF_NAME: "Luna"},
        options={},
        title=ENTRY_TITLE,
    )
    entry.add_to_hass(hass)
    return entry


@pytest.fixture
async def setup_integration(hass: HomeAssistant, config_entry: MockConfigEntry):
    assert await hass.config_entries.async_setup(config_entry.entry_id)
    await hass.async_block_till_done()
    return config_entry
