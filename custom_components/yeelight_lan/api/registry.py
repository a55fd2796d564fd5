"""Registry of known Yeelight sessions."""
from __future__ import annotations

import logging
from collections.abc import Callable

from .device import YeelightDevice
from .discovery import YeelightDiscovery
from .models import DeviceDescriptor

_LOGGER = logging.getLogger(__name__)

DeviceAddedCallback = Callable[[YeelightDevice], None]


class YeelightRegistry:
    """Holds one YeelightDevice per identity.

    Discovery only ever adds sessions. A rediscovered identity leaves the
    existing session, and its live state, untouched.
    """

    def __init__(self, discovery: YeelightDiscovery | None = None) -> None:
        """Initialize the registry.

        Args:
            discovery: Discovery engine, a default one is created if omitted.
        """
        self._discovery = discovery or YeelightDiscovery()
        self._devices: dict[str, YeelightDevice] = {}
        self._on_device_added: list[DeviceAddedCallback] = []

    @property
    def devices(self) -> list[YeelightDevice]:
        """Return sessions in the order they were added."""
        return list(self._devices.values())

    @property
    def is_discovering(self) -> bool:
        """Return True while a discovery scan is running."""
        return self._discovery.in_progress

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def by_identity(self, device_id: str) -> YeelightDevice | None:
        """Return the session for an identity, if known."""
        return self._devices.get(device_id)

    def async_add_listener(self, callback: DeviceAddedCallback) -> Callable[[], None]:
        """Register a callback run for each newly added session."""
        self._on_device_added.append(callback)

        def remove_listener() -> None:
            if callback in self._on_device_added:
                self._on_device_added.remove(callback)

        return remove_listener

    def async_add_descriptor(self, descriptor: DeviceDescriptor) -> YeelightDevice | None:
        """Create a session for an unseen identity.

        Returns:
            The new session, or None if the identity was already known.
        """
        if descriptor.device_id in self._devices:
            return None

        device = YeelightDevice.from_descriptor(descriptor)
        self._devices[device.device_id] = device
        _LOGGER.info(
            "Added Yeelight %s (%s, %s) at %s:%d",
            device.name,
            device.model,
            device.device_id,
            device.host,
            device.port,
        )

        for callback in list(self._on_device_added):
            callback(device)
        return device

    async def async_discover(self) -> list[YeelightDevice]:
        """Run discovery and register every new identity.

        Returns:
            Sessions created by this call.
        """
        descriptors = await self._discovery.async_discover(set(self._devices))
        added: list[YeelightDevice] = []
        for descriptor in descriptors:
            device = self.async_add_descriptor(descriptor)
            if device is not None:
                added.append(device)

        _LOGGER.debug(
            "Discovery finished: %d new, %d known", len(added), len(self._devices)
        )
        return added

    async def async_close(self) -> None:
        """Close every session's connection."""
        for device in self._devices.values():
            await device.async_close()
