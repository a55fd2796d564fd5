"""Button platform for Yeelight LAN integration.

Provides a "Search for bulbs" button that runs a discovery scan on demand.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.button import ButtonDeviceClass, ButtonEntity
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, ENTRY_TITLE, MANUFACTURER
from .coordinator import YeelightCoordinator

if TYPE_CHECKING:
    from . import YeelightConfigEntry

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: YeelightConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Yeelight buttons from a config entry."""
    coordinator = entry.runtime_data.coordinator
    async_add_entities([YeelightSearchButton(coordinator, entry.entry_id)])


class YeelightSearchButton(CoordinatorEntity[YeelightCoordinator], ButtonEntity):
    """Button that searches the LAN for bulbs.

    Belongs to the integration's own service device rather than to a bulb.
    """

    _attr_has_entity_name = True
    _attr_device_class = ButtonDeviceClass.UPDATE
    _attr_entity_category = EntityCategory.CONFIG
    _attr_translation_key = "search_bulbs"
    _attr_icon = "mdi:magnify"

    def __init__(self, coordinator: YeelightCoordinator, entry_id: str) -> None:
        """Initialize the search button."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry_id}_search_bulbs"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry_id)},
            name=ENTRY_TITLE,
            manufacturer=MANUFACTURER,
            entry_type=DeviceEntryType.SERVICE,
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return extra state attributes."""
        return {
            "is_discovering": self.coordinator.is_discovering,
            "bulb_count": len(self.coordinator.devices),
        }

    async def async_press(self) -> None:
        """Handle the button press - run a discovery scan."""
        _LOGGER.debug("Searching for Yeelight bulbs")

        added = await self.coordinator.async_discover()

        _LOGGER.info("Bulb search finished, %d new bulb(s) found", len(added))
