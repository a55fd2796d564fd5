"""Control session for a single Yeelight bulb.

Each YeelightDevice owns at most one TCP connection to its bulb. Requests
are correlated with replies by a per-session id, and the bulb may push
props notifications at any time on the same connection.

Transport callbacks never touch session state. They post events to the
session's queue, and a single dispatch task applies them in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import async_timeout

from .const import (
    COLOR_TEMP_MAX,
    COLOR_TEMP_MIN,
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    COMMAND_TIMEOUT,
    CONNECT_TIMEOUT,
    METHOD_GET_PROP,
    METHOD_SET_BRIGHT,
    METHOD_SET_CT_ABX,
    METHOD_SET_POWER,
    METHOD_SET_RGB,
    POWER_OFF,
    POWER_ON,
    STATE_PROPERTIES,
    TRANSITION_DURATION,
    TRANSITION_EFFECT,
)
from .exceptions import (
    YeelightCommandError,
    YeelightConnectionLostError,
    YeelightEncodingError,
    YeelightNotConnectedError,
    YeelightTimeoutError,
    YeelightTransportError,
)
from .models import DeviceDescriptor, RGBColor, YeelightDeviceState, clamp
from .protocol import CommandReply, FrameBuffer, PropsNotification, encode_command, parse_frame

_LOGGER = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_CONNECT_FAILED = "connect_failed"
EVENT_DATA = "data"
EVENT_LOST = "lost"
EVENT_TIMEOUT = "timeout"

# (kind, connection attempt or None, payload)
SessionEvent = tuple[str, int | None, Any]

StateListener = Callable[[], None]


class ConnectionState(Enum):
    """Lifecycle of the control connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class PendingCommand:
    """A request waiting for its reply."""

    command_id: int
    method: str
    future: asyncio.Future[list[str]]
    created: float
    timer: asyncio.TimerHandle | None = None


class YeelightProtocol(asyncio.Protocol):
    """Forwards transport callbacks to a session as events."""

    def __init__(self, events: asyncio.Queue[SessionEvent], attempt: int) -> None:
        """Initialize the protocol for one connection attempt."""
        self._events = events
        self._attempt = attempt

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._events.put_nowait((EVENT_CONNECTED, self._attempt, transport))

    def data_received(self, data: bytes) -> None:
        self._events.put_nowait((EVENT_DATA, self._attempt, data))

    def connection_lost(self, exc: Exception | None) -> None:
        self._events.put_nowait((EVENT_LOST, self._attempt, exc))


class YeelightDevice:
    """A bulb and its control channel.

    The session object lives as long as the registry knows the bulb. Only
    the connection is ephemeral: it is opened lazily by the first command
    and re-opened by the next command after it drops.

    Usage:
        device = YeelightDevice.from_descriptor(descriptor)
        await device.async_set_power(True)
        await device.async_set_brightness(40)
        await device.async_close()
    """

    def __init__(
        self,
        device_id: str,
        name: str,
        host: str,
        port: int,
        model: str,
        state: YeelightDeviceState | None = None,
        command_timeout: float = COMMAND_TIMEOUT,
        connect_timeout: float = CONNECT_TIMEOUT,
    ) -> None:
        """Initialize the session.

        Args:
            device_id: Identity advertised by the bulb.
            name: Display name.
            host: IP address of the control channel.
            port: TCP port of the control channel.
            model: Model name advertised by the bulb.
            state: Initial observed state, usually from discovery.
            command_timeout: Seconds to wait for a reply.
            connect_timeout: Seconds a command waits for the connection to be ready.
        """
        self._device_id = device_id
        self._name = name
        self._host = host
        self._port = port
        self._model = model
        self._state = state or YeelightDeviceState()
        self._command_timeout = command_timeout
        self._connect_timeout = connect_timeout

        self._connection_state = ConnectionState.DISCONNECTED
        self._transport: asyncio.Transport | None = None
        self._attempt = 0
        self._ready: asyncio.Event | None = None
        self._connect_error: Exception | None = None
        self._connect_task: asyncio.Task[None] | None = None

        self._events: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._dispatch_task: asyncio.Task[None] | None = None
        self._buffer = FrameBuffer()

        self._next_id = 1
        self._pending: dict[int, PendingCommand] = {}
        self._listeners: list[StateListener] = []

    @classmethod
    def from_descriptor(cls, descriptor: DeviceDescriptor, **kwargs: Any) -> YeelightDevice:
        """Create a disconnected session seeded with the advertised state."""
        return cls(
            descriptor.device_id,
            descriptor.name,
            descriptor.host,
            descriptor.port,
            descriptor.model,
            state=YeelightDeviceState.from_descriptor(descriptor),
            **kwargs,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, YeelightDevice):
            return NotImplemented
        return self._device_id == other._device_id

    def __hash__(self) -> int:
        return hash(self._device_id)

    def __repr__(self) -> str:
        return (
            f"YeelightDevice({self._device_id!r}, {self._name!r}, "
            f"{self._host}:{self._port}, {self._connection_state.value})"
        )

    # === Identity ===

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def model(self) -> str:
        return self._model

    # === Observed state ===

    @property
    def state(self) -> YeelightDeviceState:
        """Return the live state object."""
        return self._state

    @property
    def power(self) -> bool:
        return self._state.power

    @property
    def brightness(self) -> int:
        return self._state.brightness

    @property
    def color_temp(self) -> int:
        return self._state.color_temp

    @property
    def rgb(self) -> int:
        return self._state.rgb

    @property
    def color_mode(self) -> int:
        return self._state.color_mode

    @property
    def rgb_color(self) -> tuple[int, int, int]:
        """Return the current color as (r, g, b)."""
        return self._state.rgb_color

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def connected(self) -> bool:
        return self._connection_state is ConnectionState.CONNECTED

    @property
    def pending_count(self) -> int:
        """Number of commands awaiting a reply."""
        return len(self._pending)

    def async_add_listener(self, update_callback: StateListener) -> Callable[[], None]:
        """Register a callback run after every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(update_callback)

        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:  # pylint: disable=broad-except
                _LOGGER.exception("Error in state listener for %s", self._device_id)

    # === Commands ===

    async def async_set_power(self, on: bool) -> None:
        """Switch the bulb on or off."""
        await self._async_send_command(
            METHOD_SET_POWER,
            [POWER_ON if on else POWER_OFF, TRANSITION_EFFECT, TRANSITION_DURATION],
        )
        self._state.apply_optimistic_power(on)
        self._notify()

    async def async_toggle(self) -> None:
        """Invert the locally known power state."""
        await self.async_set_power(not self._state.power)

    async def async_set_brightness(self, value: int) -> None:
        """Set brightness, clamped to 1-100."""
        brightness = clamp(value, BRIGHTNESS_MIN, BRIGHTNESS_MAX)
        await self._async_send_command(
            METHOD_SET_BRIGHT, [brightness, TRANSITION_EFFECT, TRANSITION_DURATION]
        )
        self._state.apply_optimistic_brightness(brightness)
        self._notify()

    async def async_set_color_temp(self, kelvin: int) -> None:
        """Set color temperature, clamped to 1700-6500 K."""
        color_temp = clamp(kelvin, COLOR_TEMP_MIN, COLOR_TEMP_MAX)
        await self._async_send_command(
            METHOD_SET_CT_ABX, [color_temp, TRANSITION_EFFECT, TRANSITION_DURATION]
        )
        self._state.apply_optimistic_color_temp(color_temp)
        self._notify()

    async def async_set_rgb(self, r: int, g: int, b: int) -> None:
        """Set RGB color, each channel clamped to 0-255."""
        rgb = RGBColor(r, g, b).as_packed_int
        await self._async_send_command(
            METHOD_SET_RGB, [rgb, TRANSITION_EFFECT, TRANSITION_DURATION]
        )
        self._state.apply_optimistic_rgb(rgb)
        self._notify()

    async def async_refresh_state(self) -> bool:
        """Query power, brightness, color temperature, RGB and color mode.

        Returns:
            True if the reply was complete and the state was overwritten.
        """
        result = await self._async_send_command(METHOD_GET_PROP, list(STATE_PROPERTIES))
        if not self._state.update_from_result(result):
            _LOGGER.debug(
                "Ignoring short get_prop reply from %s: %s", self._device_id, result
            )
            return False
        self._notify()
        return True

    async def _async_send_command(self, method: str, params: list[Any]) -> list[str]:
        """Send one request and wait for its reply.

        Raises:
            YeelightNotConnectedError: No transport became ready in time.
            YeelightEncodingError: The request could not be serialized.
            YeelightTransportError: Writing to the transport failed, or the
                connection dropped before the reply arrived.
            YeelightTimeoutError: No reply within the command timeout.
            YeelightCommandError: The bulb answered with an error.
        """
        transport = await self._async_ensure_connected()

        command_id = self._next_id
        self._next_id += 1

        try:
            line = encode_command(command_id, method, params)
        except (TypeError, ValueError) as err:
            raise YeelightEncodingError(method, self._device_id) from err

        loop = asyncio.get_running_loop()
        pending = PendingCommand(
            command_id=command_id,
            method=method,
            future=loop.create_future(),
            created=loop.time(),
        )
        self._pending[command_id] = pending

        try:
            transport.write(line)
        except (OSError, RuntimeError) as err:
            self._pending.pop(command_id, None)
            raise YeelightTransportError(
                f"Failed to send {method}: {err}", self._device_id
            ) from err

        _LOGGER.debug("Sent to %s: %s", self._device_id, line.rstrip())
        pending.timer = loop.call_later(
            self._command_timeout,
            self._events.put_nowait,
            (EVENT_TIMEOUT, None, command_id),
        )
        return await pending.future

    # === Connection ===

    async def async_connect(self) -> None:
        """Open the connection and wait until it is ready."""
        await self._async_ensure_connected()

    async def async_disconnect(self) -> None:
        """Tear down the connection, keeping the session and its state."""
        connect_task = self._connect_task
        self._connect_task = None

        transport = self._transport
        was_connected = self._connection_state is not ConnectionState.DISCONNECTED
        self._drop_connection(YeelightConnectionLostError("Disconnected", self._device_id))
        if transport is not None:
            transport.close()
        if connect_task is not None and not connect_task.done():
            connect_task.cancel()
            try:
                await connect_task
            except asyncio.CancelledError:
                pass
        if was_connected:
            _LOGGER.debug("Disconnected from %s", self._device_id)
            self._notify()

    async def async_close(self) -> None:
        """Disconnect and stop the dispatch task."""
        await self.async_disconnect()
        if self._dispatch_task is not None:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

    async def _async_ensure_connected(self) -> asyncio.Transport:
        """Return a ready transport, connecting first if needed."""
        if self._transport_ready():
            assert self._transport is not None
            return self._transport

        if (
            self._connection_state is ConnectionState.CONNECTED
            and self._transport is not None
            and self._transport.is_closing()
        ):
            # Closing before its connection_lost event has been dispatched
            _LOGGER.debug("Transport to %s is closing, reconnecting", self._device_id)
            self._drop_connection(
                YeelightConnectionLostError("Connection closing", self._device_id)
            )
            self._notify()

        if self._connection_state is ConnectionState.DISCONNECTED:
            self._start_connect()

        ready = self._ready
        assert ready is not None
        try:
            async with async_timeout.timeout(self._connect_timeout):
                await ready.wait()
        except asyncio.TimeoutError as err:
            raise YeelightNotConnectedError(
                f"Connection to {self._host}:{self._port} not ready", self._device_id
            ) from err

        if not self._transport_ready():
            reason = f": {self._connect_error}" if self._connect_error else ""
            raise YeelightNotConnectedError(
                f"Failed to connect to {self._host}:{self._port}{reason}",
                self._device_id,
            )
        assert self._transport is not None
        return self._transport

    def _transport_ready(self) -> bool:
        return (
            self._connection_state is ConnectionState.CONNECTED
            and self._transport is not None
            and not self._transport.is_closing()
        )

    def _start_connect(self) -> None:
        self._ensure_dispatcher()
        self._attempt += 1
        self._connection_state = ConnectionState.CONNECTING
        self._connect_error = None
        self._ready = asyncio.Event()
        self._connect_task = asyncio.get_running_loop().create_task(
            self._async_open(self._attempt)
        )
        _LOGGER.debug("Connecting to %s at %s:%d", self._device_id, self._host, self._port)

    async def _async_open(self, attempt: int) -> None:
        loop = asyncio.get_running_loop()
        try:
            async with async_timeout.timeout(self._command_timeout):
                await loop.create_connection(
                    lambda: YeelightProtocol(self._events, attempt),
                    self._host,
                    self._port,
                )
        except (OSError, ValueError, asyncio.TimeoutError) as err:
            # UnicodeError (a ValueError) for hosts that fail IDNA encoding
            self._events.put_nowait((EVENT_CONNECT_FAILED, attempt, err))

    def _ensure_dispatcher(self) -> None:
        if self._dispatch_task is None or self._dispatch_task.done():
            self._dispatch_task = asyncio.get_running_loop().create_task(
                self._async_dispatch()
            )

    async def _async_dispatch(self) -> None:
        while True:
            event = await self._events.get()
            try:
                self._handle_event(event)
            except Exception:  # pylint: disable=broad-except
                _LOGGER.exception(
                    "Error handling %s event for %s", event[0], self._device_id
                )

    def _handle_event(self, event: SessionEvent) -> None:
        kind, attempt, payload = event

        if kind == EVENT_TIMEOUT:
            self._expire(payload)
            return

        if attempt != self._attempt:
            # Left over from a connection that was already torn down
            if kind == EVENT_CONNECTED:
                payload.close()
            return

        if kind == EVENT_CONNECTED:
            if self._connection_state is not ConnectionState.CONNECTING:
                payload.close()
                return
            self._transport = payload
            self._connection_state = ConnectionState.CONNECTED
            self._connect_task = None
            self._buffer.clear()
            _LOGGER.debug("Connected to %s", self._device_id)
            if self._ready is not None:
                self._ready.set()
            self._notify()

        elif kind == EVENT_CONNECT_FAILED:
            _LOGGER.debug("Failed to connect to %s: %s", self._device_id, payload)
            self._connect_error = payload
            self._connect_task = None
            self._connection_state = ConnectionState.DISCONNECTED
            if self._ready is not None:
                self._ready.set()

        elif kind == EVENT_DATA:
            self._process_data(payload)

        elif kind == EVENT_LOST:
            _LOGGER.debug(
                "Connection to %s lost: %s (%d unparsed bytes dropped)",
                self._device_id,
                payload,
                len(self._buffer),
            )
            message = f"Connection lost: {payload}" if payload else "Connection closed"
            self._drop_connection(YeelightConnectionLostError(message, self._device_id))
            self._notify()

    def _drop_connection(self, error: Exception) -> None:
        """Forget the transport and fail every outstanding command."""
        self._attempt += 1
        self._transport = None
        self._connection_state = ConnectionState.DISCONNECTED
        self._buffer.clear()
        if self._ready is not None:
            self._ready.set()

        pending = list(self._pending.values())
        self._pending.clear()
        for command in pending:
            if command.timer is not None:
                command.timer.cancel()
            if not command.future.done():
                command.future.set_exception(error)

    # === Inbound frames ===

    def _process_data(self, data: bytes) -> None:
        for line in self._buffer.feed(data):
            _LOGGER.debug("Received from %s: %s", self._device_id, line)
            frame = parse_frame(line)
            if isinstance(frame, CommandReply):
                self._resolve(frame)
            elif isinstance(frame, PropsNotification):
                if self._state.update_from_props(frame.params):
                    self._notify()

    def _resolve(self, reply: CommandReply) -> None:
        pending = self._pending.pop(reply.command_id, None)
        if pending is None:
            _LOGGER.debug(
                "Dropping reply with unknown id %d from %s",
                reply.command_id,
                self._device_id,
            )
            return

        if pending.timer is not None:
            pending.timer.cancel()
        if pending.future.done():
            return

        if reply.is_error:
            assert reply.error_message is not None
            pending.future.set_exception(
                YeelightCommandError(reply.error_message, reply.error_code, self._device_id)
            )
        else:
            pending.future.set_result(reply.result or [])

    def _expire(self, command_id: int) -> None:
        pending = self._pending.pop(command_id, None)
        if pending is None or pending.future.done():
            return
        _LOGGER.debug(
            "Command %s (id=%d) to %s timed out after %.1fs",
            pending.method,
            command_id,
            self._device_id,
            asyncio.get_running_loop().time() - pending.created,
        )
        pending.future.set_exception(
            YeelightTimeoutError(pending.method, command_id, self._device_id)
        )
