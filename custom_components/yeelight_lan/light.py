"""Yeelight LAN light platform."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_COLOR_TEMP_KELVIN,
    ATTR_RGB_COLOR,
    ColorMode,
    LightEntity,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .api import COLOR_TEMP_MAX, COLOR_TEMP_MIN, YeelightDevice, YeelightError
from .api.models import ColorMode as YeelightColorMode
from .const import SIGNAL_DEVICE_ADDED
from .coordinator import YeelightCoordinator
from .entity import YeelightEntity
from .exceptions import translate_error

if TYPE_CHECKING:
    from . import YeelightConfigEntry

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: YeelightConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Yeelight lights from a config entry."""
    coordinator = entry.runtime_data.coordinator

    entities = [
        YeelightLightEntity(coordinator, device)
        for device in coordinator.devices.values()
    ]
    _LOGGER.debug("Adding %d light entities", len(entities))
    async_add_entities(entities)

    @callback
    def async_add_device(device: YeelightDevice) -> None:
        _LOGGER.debug("Adding light entity for new bulb %s", device.name)
        async_add_entities([YeelightLightEntity(coordinator, device)])

    entry.async_on_unload(
        async_dispatcher_connect(
            hass, SIGNAL_DEVICE_ADDED.format(entry.entry_id), async_add_device
        )
    )


class YeelightLightEntity(YeelightEntity, LightEntity):
    """Yeelight bulb as a light entity."""

    _attr_name = None  # Use device name
    _attr_supported_color_modes = {ColorMode.COLOR_TEMP, ColorMode.RGB}
    _attr_min_color_temp_kelvin = COLOR_TEMP_MIN
    _attr_max_color_temp_kelvin = COLOR_TEMP_MAX

    def __init__(
        self,
        coordinator: YeelightCoordinator,
        device: YeelightDevice,
    ) -> None:
        """Initialize the light entity."""
        super().__init__(coordinator, device)
        self._attr_unique_id = f"yeelight_lan_{device.device_id}"

    # === State Properties ===

    @property
    def is_on(self) -> bool | None:
        """Return true if light is on."""
        state = self.device_state
        if state is None:
            return None
        return state.power

    @property
    def brightness(self) -> int | None:
        """Return the brightness (0-255)."""
        state = self.device_state
        if state is None:
            return None
        # Convert from device range (1-100) to HA range (0-255)
        return round(state.brightness * 255 / 100)

    @property
    def rgb_color(self) -> tuple[int, int, int] | None:
        """Return the RGB color."""
        state = self.device_state
        if state is None:
            return None
        return state.rgb_color

    @property
    def color_temp_kelvin(self) -> int | None:
        """Return the color temperature in Kelvin."""
        state = self.device_state
        if state is None:
            return None
        return state.color_temp

    @property
    def color_mode(self) -> ColorMode | None:
        """Return the current color mode."""
        state = self.device_state
        if state is None:
            return None
        if state.color_mode == YeelightColorMode.COLOR_TEMP:
            return ColorMode.COLOR_TEMP
        # Hue/saturation mode is reported through the packed RGB value
        return ColorMode.RGB

    # === Control Methods ===

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on."""
        _LOGGER.debug("async_turn_on for %s, kwargs: %s", self._device.name, kwargs)

        # set_* commands are rejected by a bulb that is off
        if not self._device.power or not kwargs:
            await self._async_call("set_power", self._device.async_set_power(True))

        if ATTR_RGB_COLOR in kwargs:
            r, g, b = kwargs[ATTR_RGB_COLOR]
            await self._async_call("set_rgb", self._device.async_set_rgb(r, g, b))

        if ATTR_COLOR_TEMP_KELVIN in kwargs:
            await self._async_call(
                "set_ct_abx",
                self._device.async_set_color_temp(kwargs[ATTR_COLOR_TEMP_KELVIN]),
            )

        if ATTR_BRIGHTNESS in kwargs:
            # Convert from HA range (0-255) to device range (1-100)
            brightness = round(kwargs[ATTR_BRIGHTNESS] * 100 / 255)
            await self._async_call(
                "set_bright", self._device.async_set_brightness(brightness)
            )

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off."""
        _LOGGER.debug("async_turn_off for %s", self._device.name)
        await self._async_call("set_power", self._device.async_set_power(False))

    async def _async_call(self, command: str, coro: Any) -> None:
        """Await a session command, surfacing failures to the user."""
        try:
            await coro
        except YeelightError as err:
            _LOGGER.warning(
                "Command %s failed for %s: %s", command, self._device.name, err
            )
            raise translate_error(self._device.name, command, err) from err
