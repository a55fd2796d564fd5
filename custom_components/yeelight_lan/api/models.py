"""Device descriptor and state models.

DeviceDescriptor is what a discovery reply advertises and never changes.
YeelightDeviceState is the live, mutable view of a bulb that sessions update
from command replies and props notifications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .const import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_COLOR_MODE,
    DEFAULT_COLOR_TEMP,
    DEFAULT_POWER,
    DEFAULT_RGB,
    POWER_ON,
    PROP_BRIGHT,
    PROP_COLOR_MODE,
    PROP_CT,
    PROP_POWER,
    PROP_RGB,
    RGB_CHANNEL_MAX,
    RGB_CHANNEL_MIN,
    STATE_PROPERTIES,
)


class ColorMode(IntEnum):
    """Color mode as reported by the bulb."""

    RGB = 1
    COLOR_TEMP = 2
    HSV = 3


def clamp(value: int, minimum: int, maximum: int) -> int:
    """Clamp value into [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def parse_int(value: Any) -> int | None:
    """Parse a protocol integer, which the bulb sends as a string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class RGBColor:
    """Immutable RGB color representation."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        """Clamp channels into range."""
        # Use object.__setattr__ because dataclass is frozen
        object.__setattr__(self, "r", clamp(self.r, RGB_CHANNEL_MIN, RGB_CHANNEL_MAX))
        object.__setattr__(self, "g", clamp(self.g, RGB_CHANNEL_MIN, RGB_CHANNEL_MAX))
        object.__setattr__(self, "b", clamp(self.b, RGB_CHANNEL_MIN, RGB_CHANNEL_MAX))

    @property
    def as_tuple(self) -> tuple[int, int, int]:
        """Return as (r, g, b) tuple."""
        return (self.r, self.g, self.b)

    @property
    def as_packed_int(self) -> int:
        """Return as packed 24-bit integer: (R << 16) | (G << 8) | B."""
        return (self.r << 16) | (self.g << 8) | self.b

    @classmethod
    def from_packed_int(cls, value: int) -> RGBColor:
        """Create from a packed 24-bit integer."""
        return cls(
            r=(value >> 16) & 0xFF,
            g=(value >> 8) & 0xFF,
            b=value & 0xFF,
        )


@dataclass(frozen=True)
class DeviceDescriptor:
    """A device as advertised by one discovery reply."""

    device_id: str
    name: str
    host: str
    port: int
    model: str
    power: bool = DEFAULT_POWER
    brightness: int = DEFAULT_BRIGHTNESS
    color_temp: int = DEFAULT_COLOR_TEMP
    rgb: int = DEFAULT_RGB
    color_mode: int = DEFAULT_COLOR_MODE

    @property
    def address(self) -> tuple[str, int]:
        """Return (host, port) of the control channel."""
        return (self.host, self.port)


@dataclass
class YeelightDeviceState:
    """Mutable observed state of a bulb.

    Last writer wins: optimistic updates after a successful command and
    props notifications overwrite fields in arrival order.
    """

    power: bool = DEFAULT_POWER
    brightness: int = DEFAULT_BRIGHTNESS
    color_temp: int = DEFAULT_COLOR_TEMP
    rgb: int = DEFAULT_RGB
    color_mode: int = DEFAULT_COLOR_MODE

    # "discovery", "refresh", "notification" or "optimistic"
    source: str = field(default="discovery", compare=False)

    @property
    def rgb_color(self) -> tuple[int, int, int]:
        """Return the packed RGB value as an (r, g, b) tuple."""
        return RGBColor.from_packed_int(self.rgb).as_tuple

    def update_from_props(self, params: dict[str, Any]) -> bool:
        """Merge a props notification into the state.

        Only fields present in params are touched. Returns True if any
        field was applied.
        """
        changed = False

        power = params.get(PROP_POWER)
        if isinstance(power, str):
            self.power = power == POWER_ON
            changed = True

        for prop, attr in (
            (PROP_BRIGHT, "brightness"),
            (PROP_CT, "color_temp"),
            (PROP_RGB, "rgb"),
            (PROP_COLOR_MODE, "color_mode"),
        ):
            if prop not in params:
                continue
            value = parse_int(params[prop])
            if value is not None:
                setattr(self, attr, value)
                changed = True

        if changed:
            self.source = "notification"
        return changed

    def update_from_result(self, result: list[str]) -> bool:
        """Overwrite all fields from a get_prop reply.

        The reply must carry one value per entry in STATE_PROPERTIES, in
        that order. Shorter replies leave the state untouched.
        """
        if len(result) < len(STATE_PROPERTIES):
            return False

        power, bright, ct, rgb, color_mode = result[: len(STATE_PROPERTIES)]
        self.power = power == POWER_ON
        self.brightness = _or_default(parse_int(bright), DEFAULT_BRIGHTNESS)
        self.color_temp = _or_default(parse_int(ct), DEFAULT_COLOR_TEMP)
        self.rgb = _or_default(parse_int(rgb), DEFAULT_RGB)
        self.color_mode = _or_default(parse_int(color_mode), DEFAULT_COLOR_MODE)
        self.source = "refresh"
        return True

    def apply_optimistic_power(self, power_on: bool) -> None:
        """Apply optimistic power state update."""
        self.power = power_on
        self.source = "optimistic"

    def apply_optimistic_brightness(self, brightness: int) -> None:
        """Apply optimistic brightness update."""
        self.brightness = brightness
        self.source = "optimistic"

    def apply_optimistic_color_temp(self, kelvin: int) -> None:
        """Apply optimistic color temperature update."""
        self.color_temp = kelvin
        self.color_mode = ColorMode.COLOR_TEMP
        self.source = "optimistic"

    def apply_optimistic_rgb(self, rgb: int) -> None:
        """Apply optimistic RGB update."""
        self.rgb = rgb
        self.color_mode = ColorMode.RGB
        self.source = "optimistic"

    @classmethod
    def from_descriptor(cls, descriptor: DeviceDescriptor) -> YeelightDeviceState:
        """Seed state from the last advertised values."""
        return cls(
            power=descriptor.power,
            brightness=descriptor.brightness,
            color_temp=descriptor.color_temp,
            rgb=descriptor.rgb,
            color_mode=descriptor.color_mode,
        )

    def copy(self) -> YeelightDeviceState:
        """Return a detached snapshot."""
        return YeelightDeviceState(
            power=self.power,
            brightness=self.brightness,
            color_temp=self.color_temp,
            rgb=self.rgb,
            color_mode=self.color_mode,
            source=self.source,
        )


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value
