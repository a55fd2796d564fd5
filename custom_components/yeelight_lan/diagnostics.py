"""Diagnostics support for Yeelight LAN integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import HomeAssistant

if TYPE_CHECKING:
    from . import YeelightConfigEntry


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant,
    entry: YeelightConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator = entry.runtime_data.coordinator

    devices_info = {}
    for device_id, device in coordinator.devices.items():
        state = device.state
        devices_info[device_id] = {
            "name": device.name,
            "model": device.model,
            "host": device.host,
            "port": device.port,
            "connection": device.connection_state.value,
            "pending_commands": device.pending_count,
            "state": {
                "power": state.power,
                "brightness": state.brightness,
                "color_temp": state.color_temp,
                "rgb": state.rgb,
                "color_mode": int(state.color_mode),
                "source": state.source,
            },
        }

    return {
        "config_entry": {
            "entry_id": entry.entry_id,
            "version": entry.version,
            "options": dict(entry.options),
        },
        "devices": devices_info,
        "device_count": len(devices_info),
        "is_discovering": coordinator.is_discovering,
        "last_update_success": coordinator.last_update_success,
    }
