"""Config flow for Yeelight LAN integration."""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import config_validation as cv

from .api import DeviceDescriptor, YeelightDiscovery
from .const import (
    CONFIG_ENTRY_VERSION,
    CONF_DISCOVERY_INTERVAL,
    CONF_REFRESH_NEW_DEVICES,
    DEFAULT_DISCOVERY_INTERVAL,
    DEFAULT_REFRESH_NEW_DEVICES,
    DOMAIN,
    ENTRY_TITLE,
    MIN_DISCOVERY_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


async def async_scan_network() -> list[DeviceDescriptor]:
    """Run one discovery scan."""
    return await YeelightDiscovery().async_discover()


class YeelightFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Yeelight LAN."""

    VERSION = CONFIG_ENTRY_VERSION

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Ask for confirmation, then scan the network."""
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=vol.Schema({}))

        descriptors = await async_scan_network()
        if not descriptors:
            _LOGGER.debug("No Yeelight bulbs answered discovery")
            return self.async_abort(reason="no_devices_found")

        _LOGGER.debug(
            "Discovery found %d bulbs: %s",
            len(descriptors),
            [descriptor.name for descriptor in descriptors],
        )
        return self.async_create_entry(title=ENTRY_TITLE, data={})

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> YeelightOptionsFlowHandler:
        """Get the options flow."""
        return YeelightOptionsFlowHandler(config_entry)


class YeelightOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self.options = dict(config_entry.options)

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options."""
        if user_input is not None:
            self.options.update(user_input)
            return self.async_create_entry(title="", data=self.options)

        options_schema = vol.Schema(
            {
                vol.Optional(
                    CONF_DISCOVERY_INTERVAL,
                    default=self.options.get(
                        CONF_DISCOVERY_INTERVAL, DEFAULT_DISCOVERY_INTERVAL
                    ),
                ): vol.All(cv.positive_int, vol.Range(min=MIN_DISCOVERY_INTERVAL)),
                vol.Required(
                    CONF_REFRESH_NEW_DEVICES,
                    default=self.options.get(
                        CONF_REFRESH_NEW_DEVICES, DEFAULT_REFRESH_NEW_DEVICES
                    ),
                ): cv.boolean,
            }
        )

        return self.async_show_form(step_id="init", data_schema=options_schema)
