"""Test Yeelight LAN integration setup and lifecycle."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import STATE_ON
from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_registry as er

from custom_components.yeelight_lan import YeelightRuntimeData
from custom_components.yeelight_lan.const import CONF_DISCOVERY_INTERVAL, DOMAIN


class TestYeelightRuntimeData:
    """Test YeelightRuntimeData dataclass."""

    def test_devices_come_from_coordinator(self, mock_coordinator, mock_session):
        """Test the device map is the coordinator's."""
        registry = MagicMock()
        runtime_data = YeelightRuntimeData(registry=registry, coordinator=mock_coordinator)

        assert runtime_data.registry is registry
        assert runtime_data.devices == {mock_session.device_id: mock_session}


class TestSetupEntry:
    """Test setting up and unloading the entry."""

    @pytest.mark.asyncio
    async def test_setup_and_unload(
        self, hass: HomeAssistant, mock_config_entry, mock_discovery, descriptor
    ):
        """Test discovered bulbs become light entities next to the search button."""
        mock_config_entry.add_to_hass(hass)

        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

        assert mock_config_entry.state is ConfigEntryState.LOADED
        runtime_data = mock_config_entry.runtime_data
        assert list(runtime_data.devices) == [descriptor.device_id]
        state = hass.states.get("light.bedroom")
        assert state is not None
        assert state.state == STATE_ON
        entity_registry = er.async_get(hass)
        assert entity_registry.async_get_entity_id(
            "button", DOMAIN, f"{mock_config_entry.entry_id}_search_bulbs"
        )

        assert await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()

        assert mock_config_entry.state is ConfigEntryState.NOT_LOADED

    @pytest.mark.asyncio
    async def test_setup_retries_without_bulbs(
        self, hass: HomeAssistant, mock_config_entry, mock_discovery
    ):
        """Test setup is retried when discovery finds nothing."""
        mock_discovery.return_value = []
        mock_config_entry.add_to_hass(hass)

        await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

        assert mock_config_entry.state is ConfigEntryState.SETUP_RETRY

    @pytest.mark.asyncio
    async def test_options_update_reloads(
        self, hass: HomeAssistant, mock_config_entry, mock_discovery
    ):
        """Test changing options reloads the entry."""
        mock_config_entry.add_to_hass(hass)
        await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()
        assert mock_discovery.await_count == 1

        hass.config_entries.async_update_entry(
            mock_config_entry,
            options={**mock_config_entry.options, CONF_DISCOVERY_INTERVAL: 600},
        )
        await hass.async_block_till_done()

        assert mock_config_entry.state is ConfigEntryState.LOADED
        assert mock_discovery.await_count == 2
        assert mock_config_entry.runtime_data.coordinator.update_interval.total_seconds() == 600

        await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()
