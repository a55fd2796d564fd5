"""The Yeelight LAN integration."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .api import YeelightDevice, YeelightRegistry
from .const import CONF_DISCOVERY_INTERVAL, DEFAULT_DISCOVERY_INTERVAL, PLATFORMS
from .coordinator import YeelightCoordinator

_LOGGER = logging.getLogger(__name__)


@dataclass
class YeelightRuntimeData:
    """Runtime data for Yeelight LAN integration."""

    registry: YeelightRegistry
    coordinator: YeelightCoordinator

    @property
    def devices(self) -> dict[str, YeelightDevice]:
        """Return known sessions by identity."""
        return self.coordinator.devices


type YeelightConfigEntry = ConfigEntry[YeelightRuntimeData]


async def async_setup_entry(hass: HomeAssistant, entry: YeelightConfigEntry) -> bool:
    """Set up Yeelight LAN from a config entry."""
    _LOGGER.debug("Setting up Yeelight LAN integration")

    discovery_interval = entry.options.get(
        CONF_DISCOVERY_INTERVAL, DEFAULT_DISCOVERY_INTERVAL
    )

    registry = YeelightRegistry()
    coordinator = YeelightCoordinator(
        hass,
        entry,
        registry,
        update_interval=timedelta(seconds=discovery_interval),
    )

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady:
        _LOGGER.debug("No Yeelight bulbs answered discovery, will retry")
        await registry.async_close()
        raise

    entry.runtime_data = YeelightRuntimeData(
        registry=registry,
        coordinator=coordinator,
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Register update listener for options changes
    entry.async_on_unload(entry.add_update_listener(async_options_updated))

    _LOGGER.info(
        "Yeelight LAN integration set up with %d bulbs",
        len(registry),
    )

    return True


async def async_unload_entry(hass: HomeAssistant, entry: YeelightConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.debug("Unloading Yeelight LAN integration")

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        await entry.runtime_data.coordinator.async_shutdown()

    return unload_ok


async def async_options_updated(hass: HomeAssistant, entry: YeelightConfigEntry) -> None:
    """Handle options update."""
    _LOGGER.debug("Options updated, reloading integration")
    await hass.config_entries.async_reload(entry.entry_id)
