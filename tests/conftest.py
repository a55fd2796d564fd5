"""Shared test fixtures for Yeelight LAN integration tests."""
from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator, Generator, Iterator
from contextlib import contextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.yeelight_lan.api import (
    ConnectionState,
    DeviceDescriptor,
    YeelightDevice,
    YeelightDeviceState,
)
from custom_components.yeelight_lan.const import (
    CONF_DISCOVERY_INTERVAL,
    CONF_REFRESH_NEW_DEVICES,
    DOMAIN,
    ENTRY_TITLE,
)


# ==============================================================================
# Fake transport
# ==============================================================================


class FakeTransport:
    """Stands in for an asyncio TCP transport."""

    def __init__(self, protocol: asyncio.Protocol) -> None:
        self.protocol = protocol
        self.written: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True

    @property
    def requests(self) -> list[dict[str, Any]]:
        """Return every written line decoded as JSON."""
        return [json.loads(line.decode("utf-8")) for line in self.written]


class FakeNetwork:
    """Hands out FakeTransports in place of real TCP connections."""

    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []
        self.connect_error: Exception | None = None
        self.hang = False

    @property
    def transport(self) -> FakeTransport:
        """Return the most recently opened transport."""
        return self.transports[-1]

    async def create_connection(
        self, protocol_factory: Any, host: str, port: int
    ) -> tuple[FakeTransport, asyncio.Protocol]:
        if self.hang:
            await asyncio.Event().wait()
        if self.connect_error is not None:
            raise self.connect_error
        protocol = protocol_factory()
        transport = FakeTransport(protocol)
        self.transports.append(transport)
        protocol.connection_made(transport)
        return transport, protocol

    @contextmanager
    def patch(self) -> Iterator[FakeNetwork]:
        """Route the running loop's create_connection through this network."""
        loop = asyncio.get_running_loop()
        with patch.object(loop, "create_connection", self.create_connection):
            yield self

    def reply(self, payload: dict[str, Any] | str) -> None:
        """Deliver one line from the bulb on the latest transport."""
        line = payload if isinstance(payload, str) else json.dumps(payload)
        self.transport.protocol.data_received(line.encode("utf-8") + b"\r\n")

    async def wait_for_writes(self, count: int) -> list[dict[str, Any]]:
        """Wait until the latest transport has seen count requests."""
        for _ in range(200):
            if self.transports and len(self.transport.written) >= count:
                return self.transport.requests
            await asyncio.sleep(0.005)
        raise AssertionError(f"Expected {count} requests to be written")

    async def wait_for_transports(self, count: int) -> None:
        """Wait until count connections have been opened."""
        for _ in range(200):
            if len(self.transports) >= count:
                return
            await asyncio.sleep(0.005)
        raise AssertionError(f"Expected {count} connections to be opened")

    async def settle(self) -> None:
        """Let the session's dispatch task drain its queue."""
        for _ in range(10):
            await asyncio.sleep(0)


@pytest.fixture
def fake_network() -> FakeNetwork:
    """Create a fake network."""
    return FakeNetwork()


# ==============================================================================
# Descriptor and Session Fixtures
# ==============================================================================


@pytest.fixture
def descriptor() -> DeviceDescriptor:
    """Create a descriptor as advertised by a color bulb."""
    return DeviceDescriptor(
        device_id="0x000000000015243f",
        name="Bedroom",
        host="192.168.1.50",
        port=55443,
        model="color",
        power=True,
        brightness=70,
        color_temp=4000,
        rgb=16777215,
        color_mode=2,
    )


@pytest.fixture
def second_descriptor() -> DeviceDescriptor:
    """Create a descriptor for a second bulb."""
    return DeviceDescriptor(
        device_id="0x0000000000152440",
        name="Yeelight mono",
        host="192.168.1.51",
        port=55443,
        model="mono",
    )


@pytest.fixture
async def device(descriptor: DeviceDescriptor) -> AsyncGenerator[YeelightDevice, None]:
    """Create a session with short timeouts, closed after the test."""
    session = YeelightDevice.from_descriptor(
        descriptor, command_timeout=0.1, connect_timeout=0.2
    )
    yield session
    await session.async_close()


# ==============================================================================
# Home Assistant Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(
    enable_custom_integrations: Generator[None, None, None],
) -> Generator[None, None, None]:
    """Enable custom integrations for all tests."""
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Create a mock Yeelight LAN config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=ENTRY_TITLE,
        data={},
        options={
            CONF_DISCOVERY_INTERVAL: 300,
            CONF_REFRESH_NEW_DEVICES: False,
        },
        entry_id="test_entry_id",
        unique_id=DOMAIN,
    )


@pytest.fixture
def mock_session(descriptor: DeviceDescriptor) -> MagicMock:
    """Create a mock session with live state."""
    session = MagicMock(spec=YeelightDevice)
    session.device_id = descriptor.device_id
    session.name = descriptor.name
    session.model = descriptor.model
    session.host = descriptor.host
    session.port = descriptor.port
    session.state = YeelightDeviceState.from_descriptor(descriptor)
    session.power = descriptor.power
    session.connection_state = ConnectionState.CONNECTED
    session.pending_count = 0
    session.async_set_power = AsyncMock()
    session.async_set_brightness = AsyncMock()
    session.async_set_color_temp = AsyncMock()
    session.async_set_rgb = AsyncMock()
    session.async_refresh_state = AsyncMock(return_value=True)
    session.async_close = AsyncMock()
    return session


@pytest.fixture
def mock_coordinator(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_session: MagicMock,
) -> MagicMock:
    """Create a mocked coordinator holding one session."""
    from custom_components.yeelight_lan.coordinator import YeelightCoordinator

    coordinator = MagicMock(spec=YeelightCoordinator)
    coordinator.hass = hass
    coordinator.config_entry = mock_config_entry
    coordinator.devices = {mock_session.device_id: mock_session}
    coordinator.data = {mock_session.device_id: mock_session.state}
    coordinator.last_update_success = True
    coordinator.is_discovering = False
    coordinator.async_add_listener = MagicMock()
    coordinator.async_discover = AsyncMock(return_value=[])
    coordinator.get_state = MagicMock(
        side_effect=lambda device_id: coordinator.data.get(device_id)
    )
    return coordinator


@pytest.fixture
def mock_discovery(
    descriptor: DeviceDescriptor,
) -> Generator[AsyncMock, None, None]:
    """Patch discovery to return one bulb."""
    with patch(
        "custom_components.yeelight_lan.api.discovery.YeelightDiscovery.async_discover",
        new_callable=AsyncMock,
        return_value=[descriptor],
    ) as mock_discover:
        yield mock_discover
