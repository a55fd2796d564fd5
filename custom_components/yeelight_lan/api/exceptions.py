"""Exceptions for the Yeelight LAN protocol client."""
from __future__ import annotations


class YeelightError(Exception):
    """Base exception for Yeelight protocol errors."""

    def __init__(self, message: str, device_id: str | None = None) -> None:
        """Initialize the exception."""
        super().__init__(message)
        self.message = message
        self.device_id = device_id


class YeelightNotConnectedError(YeelightError):
    """No usable transport to the device."""

    def __init__(
        self,
        message: str = "Not connected to device",
        device_id: str | None = None,
    ) -> None:
        """Initialize not-connected error."""
        super().__init__(message, device_id)


class YeelightEncodingError(YeelightError):
    """Command could not be serialized."""

    def __init__(self, method: str, device_id: str | None = None) -> None:
        """Initialize encoding error."""
        super().__init__(f"Failed to encode command: {method}", device_id)
        self.method = method


class YeelightTimeoutError(YeelightError):
    """No reply arrived before the command deadline."""

    def __init__(
        self,
        method: str,
        command_id: int,
        device_id: str | None = None,
    ) -> None:
        """Initialize timeout error."""
        super().__init__(f"Command timed out: {method} (id={command_id})", device_id)
        self.method = method
        self.command_id = command_id


class YeelightCommandError(YeelightError):
    """Device answered with an explicit error object."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        device_id: str | None = None,
    ) -> None:
        """Initialize command error."""
        super().__init__(message, device_id)
        self.code = code


class YeelightTransportError(YeelightError):
    """Send or receive failed at the network level."""


class YeelightConnectionLostError(YeelightTransportError):
    """Connection dropped while the command was outstanding."""

    def __init__(
        self,
        message: str = "Connection to device lost",
        device_id: str | None = None,
    ) -> None:
        """Initialize connection lost error."""
        super().__init__(message, device_id)
