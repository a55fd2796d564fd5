"""Yeelight LAN protocol client package."""
from __future__ import annotations

from .const import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    COLOR_TEMP_MAX,
    COLOR_TEMP_MIN,
    COMMAND_TIMEOUT,
    DISCOVERY_TIMEOUT,
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
)
from .device import ConnectionState, YeelightDevice
from .discovery import YeelightDiscovery, parse_discovery_response
from .exceptions import (
    YeelightCommandError,
    YeelightConnectionLostError,
    YeelightEncodingError,
    YeelightError,
    YeelightNotConnectedError,
    YeelightTimeoutError,
    YeelightTransportError,
)
from .models import ColorMode, DeviceDescriptor, RGBColor, YeelightDeviceState
from .registry import YeelightRegistry

__all__ = [
    # Session, discovery, registry
    "ConnectionState",
    "YeelightDevice",
    "YeelightDiscovery",
    "YeelightRegistry",
    "parse_discovery_response",
    # Models
    "ColorMode",
    "DeviceDescriptor",
    "RGBColor",
    "YeelightDeviceState",
    # Exceptions
    "YeelightCommandError",
    "YeelightConnectionLostError",
    "YeelightEncodingError",
    "YeelightError",
    "YeelightNotConnectedError",
    "YeelightTimeoutError",
    "YeelightTransportError",
    # Constants
    "BRIGHTNESS_MAX",
    "BRIGHTNESS_MIN",
    "COLOR_TEMP_MAX",
    "COLOR_TEMP_MIN",
    "COMMAND_TIMEOUT",
    "DISCOVERY_TIMEOUT",
    "MULTICAST_ADDRESS",
    "MULTICAST_PORT",
]
