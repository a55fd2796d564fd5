"""Line framing for the Yeelight control channel.

Requests and replies are single-line JSON objects terminated by CRLF.
Inbound lines are either a reply to a request (carrying its id) or an
unsolicited props notification.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from .const import LINE_TERMINATOR, METHOD_PROPS, OK_RESULT

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandReply:
    """Reply bound to a request by its correlation id."""

    command_id: int
    result: list[str] | None = None
    error_message: str | None = None
    error_code: int | None = None

    @property
    def is_error(self) -> bool:
        """Return True if the device rejected the command."""
        return self.error_message is not None


@dataclass(frozen=True)
class PropsNotification:
    """Unsolicited property change pushed by the device."""

    params: dict[str, Any]


Frame = CommandReply | PropsNotification


def encode_command(command_id: int, method: str, params: list[Any]) -> bytes:
    """Serialize a request line.

    Raises TypeError or ValueError if params are not JSON serializable.
    """
    payload = json.dumps(
        {"id": command_id, "method": method, "params": params},
        separators=(",", ":"),
        allow_nan=False,
    )
    return payload.encode("utf-8") + LINE_TERMINATOR


class FrameBuffer:
    """Accumulates received bytes and yields complete lines."""

    def __init__(self) -> None:
        """Initialize an empty buffer."""
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        """Append data and return every complete line it closes.

        Incomplete trailing data stays buffered for the next call. Lines
        that are not valid UTF-8 are dropped.
        """
        self._buffer.extend(data)
        lines: list[str] = []

        while True:
            index = self._buffer.find(LINE_TERMINATOR)
            if index < 0:
                break
            raw = bytes(self._buffer[:index])
            del self._buffer[: index + len(LINE_TERMINATOR)]
            try:
                lines.append(raw.decode("utf-8"))
            except UnicodeDecodeError:
                _LOGGER.debug("Dropping undecodable line: %r", raw)

        return lines

    def clear(self) -> None:
        """Discard any buffered partial line."""
        self._buffer.clear()


def parse_frame(line: str) -> Frame | None:
    """Classify one inbound line.

    Returns None for blank lines, invalid JSON and objects that are
    neither a reply nor a props notification.
    """
    if not line.strip():
        return None

    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        _LOGGER.debug("Dropping invalid JSON line: %s", line)
        return None

    if not isinstance(data, dict):
        return None

    command_id = data.get("id")
    if isinstance(command_id, int) and not isinstance(command_id, bool):
        result = data.get("result")
        if isinstance(result, list):
            return CommandReply(command_id, result=[str(item) for item in result])

        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            code = error.get("code")
            return CommandReply(
                command_id,
                error_message=error["message"],
                error_code=code if isinstance(code, int) else None,
            )

        # Acknowledgement without a result body
        return CommandReply(command_id, result=list(OK_RESULT))

    params = data.get("params")
    if data.get("method") == METHOD_PROPS and isinstance(params, dict):
        return PropsNotification(params)

    _LOGGER.debug("Ignoring unrecognized frame: %s", line)
    return None
