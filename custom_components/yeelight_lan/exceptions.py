"""Translatable exceptions for Yeelight LAN integration.

Exception Hierarchy:
    YeelightException (HomeAssistantError)
    ├── YeelightCommandFailed - Bulb rejected or did not answer a command
    └── YeelightDeviceUnavailable - No connection could be made to the bulb
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError

from .api import YeelightError, YeelightNotConnectedError
from .const import DOMAIN


class YeelightException(HomeAssistantError):
    """Base exception for Yeelight LAN with translation support.

    Attributes:
        translation_domain: Always set to DOMAIN ("yeelight_lan")
        translation_key: Key to look up in strings.json exceptions section
        translation_placeholders: Dynamic values to substitute in message
    """

    translation_domain: str = DOMAIN
    translation_key: str = "unknown_error"

    def __init__(
        self,
        translation_key: str | None = None,
        translation_placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize translatable exception."""
        effective_key = translation_key if translation_key is not None else type(self).translation_key

        super().__init__(
            translation_domain=type(self).translation_domain,
            translation_key=effective_key,
            translation_placeholders=translation_placeholders or {},
        )


class YeelightCommandFailed(YeelightException):
    """Command failed: device error, timeout or dropped connection."""

    translation_key = "command_failed"

    def __init__(self, device_name: str, command: str, reason: str) -> None:
        """Initialize with command details."""
        super().__init__(
            translation_key=self.translation_key,
            translation_placeholders={
                "device_name": device_name,
                "command": command,
                "reason": reason,
            },
        )
        self.device_name = device_name
        self.command = command


class YeelightDeviceUnavailable(YeelightException):
    """Bulb could not be reached."""

    translation_key = "device_unavailable"

    def __init__(self, device_name: str) -> None:
        """Initialize with device information."""
        super().__init__(
            translation_key=self.translation_key,
            translation_placeholders={"device_name": device_name},
        )
        self.device_name = device_name


def translate_error(device_name: str, command: str, err: YeelightError) -> YeelightException:
    """Map a protocol error to the exception shown to the user."""
    if isinstance(err, YeelightNotConnectedError):
        return YeelightDeviceUnavailable(device_name)
    return YeelightCommandFailed(device_name, command, err.message)
