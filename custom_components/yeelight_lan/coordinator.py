"""DataUpdateCoordinator for Yeelight LAN."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import YeelightDevice, YeelightDeviceState, YeelightError, YeelightRegistry
from .const import CONF_REFRESH_NEW_DEVICES, DEFAULT_REFRESH_NEW_DEVICES, SIGNAL_DEVICE_ADDED

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

_LOGGER = logging.getLogger(__name__)


class YeelightCoordinator(DataUpdateCoordinator[dict[str, YeelightDeviceState]]):
    """Coordinator for Yeelight bulbs.

    The periodic update re-runs discovery so new bulbs show up. State
    itself is pushed: every session notifies the coordinator when a
    command completes or the bulb sends a props notification.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        registry: YeelightRegistry,
        update_interval: timedelta,
    ) -> None:
        """Initialize the coordinator."""
        self.registry = registry
        self._unsub_devices: dict[str, CALLBACK_TYPE] = {}
        self._unsub_registry: CALLBACK_TYPE | None = None

        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name="Yeelight LAN",
            update_interval=update_interval,
        )

    @property
    def devices(self) -> dict[str, YeelightDevice]:
        """Return known sessions by identity."""
        return {device.device_id: device for device in self.registry.devices}

    @property
    def is_discovering(self) -> bool:
        """Return True while discovery is running."""
        return self.registry.is_discovering

    async def _async_setup(self) -> None:
        """Attach to the registry so every session pushes its updates."""
        _LOGGER.debug("Setting up Yeelight coordinator")
        self._unsub_registry = self.registry.async_add_listener(self._async_device_added)
        for device in self.registry.devices:
            self._async_device_added(device)

    async def _async_update_data(self) -> dict[str, YeelightDeviceState]:
        """Rediscover and return a snapshot of every bulb's state."""
        added = await self.registry.async_discover()
        if not self.registry.devices:
            raise UpdateFailed("No Yeelight bulbs found on the network")

        if added and self.config_entry.options.get(
            CONF_REFRESH_NEW_DEVICES, DEFAULT_REFRESH_NEW_DEVICES
        ):
            for device in added:
                try:
                    await device.async_refresh_state()
                except YeelightError as err:
                    _LOGGER.debug("State refresh failed for %s: %s", device.name, err)

        return self._snapshot()

    async def async_discover(self) -> list[YeelightDevice]:
        """Trigger discovery now.

        Returns:
            Sessions added by this scan.
        """
        scan = self.hass.async_create_task(
            self.registry.async_discover(), eager_start=True
        )
        # The scan is registered by now so is_discovering reads True
        self.async_update_listeners()
        added = await scan
        self._async_device_updated()
        return added

    def get_device(self, device_id: str) -> YeelightDevice | None:
        """Get session by identity."""
        return self.registry.by_identity(device_id)

    def get_state(self, device_id: str) -> YeelightDeviceState | None:
        """Get the latest state snapshot for a bulb."""
        if self.data:
            return self.data.get(device_id)
        return None

    def _snapshot(self) -> dict[str, YeelightDeviceState]:
        return {device.device_id: device.state.copy() for device in self.registry.devices}

    @callback
    def _async_device_added(self, device: YeelightDevice) -> None:
        if device.device_id in self._unsub_devices:
            return
        self._unsub_devices[device.device_id] = device.async_add_listener(
            self._async_device_updated
        )
        async_dispatcher_send(
            self.hass, SIGNAL_DEVICE_ADDED.format(self.config_entry.entry_id), device
        )

    @callback
    def _async_device_updated(self) -> None:
        # Push without rescheduling the discovery interval
        self.data = self._snapshot()
        self.async_update_listeners()

    async def async_shutdown(self) -> None:
        """Detach from the sessions and close their connections."""
        if self._unsub_registry is not None:
            self._unsub_registry()
            self._unsub_registry = None
        for unsub in self._unsub_devices.values():
            unsub()
        self._unsub_devices.clear()
        await self.registry.async_close()
        await super().async_shutdown()
