"""Base entity for Yeelight LAN integration."""
from __future__ import annotations

from typing import Any

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .api import YeelightDevice, YeelightDeviceState
from .const import DOMAIN, MANUFACTURER
from .coordinator import YeelightCoordinator


class YeelightEntity(CoordinatorEntity[YeelightCoordinator]):
    """Base entity for Yeelight bulbs."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: YeelightCoordinator,
        device: YeelightDevice,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._device = device
        self._device_id = device.device_id

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device.device_id)},
            name=device.name,
            manufacturer=MANUFACTURER,
            model=device.model,
        )

    @property
    def device_state(self) -> YeelightDeviceState | None:
        """Get current device state from coordinator."""
        return self.coordinator.get_state(self._device_id)

    @property
    def available(self) -> bool:
        """Return if entity is available."""
        if not super().available:
            return False
        return self.device_state is not None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return extra state attributes."""
        return {
            "device_id": self._device_id,
            "model": self._device.model,
            "host": self._device.host,
            "connection": self._device.connection_state.value,
        }
