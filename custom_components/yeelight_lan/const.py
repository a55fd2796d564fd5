"""Constants for the Yeelight LAN integration."""
from __future__ import annotations

from homeassistant.const import Platform

DOMAIN = "yeelight_lan"
MANUFACTURER = "Yeelight"
ENTRY_TITLE = "Yeelight LAN"

# Config entry options
CONF_DISCOVERY_INTERVAL = "discovery_interval"
CONF_REFRESH_NEW_DEVICES = "refresh_new_devices"

# How often discovery is re-run to pick up new bulbs (seconds)
DEFAULT_DISCOVERY_INTERVAL = 300
MIN_DISCOVERY_INTERVAL = 30
DEFAULT_REFRESH_NEW_DEVICES = True

# Signal sent with a YeelightDevice when discovery adds one after setup
SIGNAL_DEVICE_ADDED = f"{DOMAIN}_device_added_{{}}"

PLATFORMS: list[Platform] = [
    Platform.BUTTON,
    Platform.LIGHT,
]

# Config entry version for migrations
CONFIG_ENTRY_VERSION = 1
