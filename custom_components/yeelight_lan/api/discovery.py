"""SSDP-style multicast discovery of Yeelight bulbs.

A single M-SEARCH datagram is sent to 239.255.255.250:1982 and replies are
collected for a fixed window. Replies are header blocks, not HTTP:

    HTTP/1.1 200 OK
    Location: yeelight://192.168.1.50:55443
    id: 0x000000000015243f
    model: color
    power: on
    bright: 100
    ...

Discovery never raises. A socket that cannot be opened, or a datagram that
cannot be parsed, simply means fewer devices are returned.
"""

from __future__ import annotations

import asyncio
import logging
import re
import socket
from collections.abc import Collection

from .const import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_COLOR_MODE,
    DEFAULT_COLOR_TEMP,
    DEFAULT_MODEL,
    DEFAULT_NAME_FALLBACK,
    DEFAULT_NAME_PREFIX,
    DEFAULT_RGB,
    DISCOVERY_TIMEOUT,
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
    MULTICAST_TTL,
    POWER_ON,
    RECV_BUFFER_SIZE,
    SEARCH_TARGET,
)
from .models import DeviceDescriptor, parse_int

_LOGGER = logging.getLogger(__name__)

LOCATION_PATTERN = re.compile(r"^yeelight://([A-Za-z0-9.-]+):(\d{1,5})/?$", re.IGNORECASE)


def build_search_request() -> bytes:
    """Build the M-SEARCH datagram."""
    lines = [
        "M-SEARCH * HTTP/1.1",
        f"HOST: {MULTICAST_ADDRESS}:{MULTICAST_PORT}",
        'MAN: "ssdp:discover"',
        f"ST: {SEARCH_TARGET}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("ascii")


def parse_headers(response: str) -> dict[str, str]:
    """Split a CRLF header block into a lower-cased key map."""
    headers: dict[str, str] = {}
    for line in response.split("\r\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        headers[key.strip().lower()] = value.strip()
    return headers


def parse_location(location: str) -> tuple[str, int] | None:
    """Parse yeelight://<ip>:<port> into (host, port)."""
    match = LOCATION_PATTERN.match(location.strip())
    if match is None:
        return None
    port = int(match.group(2))
    if not 0 < port < 65536:
        return None
    return match.group(1), port


def parse_discovery_response(response: str) -> DeviceDescriptor | None:
    """Build a descriptor from one discovery reply.

    Returns None if the id or location header is missing, or if the
    location is not a yeelight:// URI with a port.
    """
    headers = parse_headers(response)

    device_id = headers.get("id")
    location = headers.get("location")
    if not device_id or not location:
        return None

    address = parse_location(location)
    if address is None:
        return None

    model = headers.get("model") or DEFAULT_MODEL
    name = headers.get("name") or (
        f"{DEFAULT_NAME_PREFIX} {headers.get('model') or DEFAULT_NAME_FALLBACK}"
    )

    return DeviceDescriptor(
        device_id=device_id,
        name=name,
        host=address[0],
        port=address[1],
        model=model,
        power=headers.get("power") == POWER_ON,
        brightness=_header_int(headers, "bright", DEFAULT_BRIGHTNESS),
        color_temp=_header_int(headers, "ct", DEFAULT_COLOR_TEMP),
        rgb=_header_int(headers, "rgb", DEFAULT_RGB),
        color_mode=_header_int(headers, "color_mode", DEFAULT_COLOR_MODE),
    )


def _header_int(headers: dict[str, str], key: str, default: int) -> int:
    value = parse_int(headers.get(key))
    return default if value is None else value


class YeelightDiscovery:
    """Runs discovery scans, one at a time.

    A call made while a scan is in flight waits for that scan and gets
    its result instead of starting a second one.
    """

    def __init__(self, timeout: float = DISCOVERY_TIMEOUT) -> None:
        """Initialize the discovery engine.

        Args:
            timeout: Listening window in seconds.
        """
        self._timeout = timeout
        self._task: asyncio.Task[list[DeviceDescriptor]] | None = None

    @property
    def in_progress(self) -> bool:
        """Return True while a scan is running."""
        return self._task is not None

    async def async_discover(
        self, known_ids: Collection[str] = ()
    ) -> list[DeviceDescriptor]:
        """Scan the network for bulbs.

        Args:
            known_ids: Identities to skip, typically the already known sessions.

        Returns:
            One descriptor per newly seen identity, first reply wins.
        """
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._async_scan(frozenset(known_ids))
            )
            self._task.add_done_callback(self._scan_done)
        else:
            _LOGGER.debug("Discovery already in progress, waiting for it")

        return await asyncio.shield(self._task)

    def _scan_done(self, task: asyncio.Task[list[DeviceDescriptor]]) -> None:
        if self._task is task:
            self._task = None

    def _create_socket(self) -> socket.socket:
        """Open a non-blocking UDP socket for multicast search."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, MULTICAST_TTL)
            sock.setblocking(False)
            sock.bind(("", 0))
        except OSError:
            sock.close()
            raise
        return sock

    async def _async_scan(self, known_ids: frozenset[str]) -> list[DeviceDescriptor]:
        loop = asyncio.get_running_loop()
        found: dict[str, DeviceDescriptor] = {}

        try:
            sock = self._create_socket()
        except OSError as err:
            _LOGGER.warning("Failed to open discovery socket: %s", err)
            return []

        try:
            try:
                await loop.sock_sendto(
                    sock, build_search_request(), (MULTICAST_ADDRESS, MULTICAST_PORT)
                )
                _LOGGER.debug(
                    "Sent discovery request to %s:%d", MULTICAST_ADDRESS, MULTICAST_PORT
                )
            except OSError as err:
                _LOGGER.warning("Failed to send discovery request: %s", err)
                return []

            end_time = loop.time() + self._timeout
            while (remaining := end_time - loop.time()) > 0:
                try:
                    data, sender = await asyncio.wait_for(
                        loop.sock_recvfrom(sock, RECV_BUFFER_SIZE),
                        timeout=remaining,
                    )
                except asyncio.TimeoutError:
                    break
                except OSError as err:
                    _LOGGER.debug("Socket error during discovery: %s", err)
                    break

                try:
                    response = data.decode("utf-8")
                except UnicodeDecodeError:
                    _LOGGER.debug("Undecodable discovery reply from %s", sender[0])
                    continue

                descriptor = parse_discovery_response(response)
                if descriptor is None:
                    _LOGGER.debug("Malformed discovery reply from %s", sender[0])
                    continue

                if descriptor.device_id in found or descriptor.device_id in known_ids:
                    continue

                found[descriptor.device_id] = descriptor
                _LOGGER.debug(
                    "Discovery reply: %s (%s) at %s:%d",
                    descriptor.name,
                    descriptor.device_id,
                    descriptor.host,
                    descriptor.port,
                )
        finally:
            sock.close()

        return list(found.values())
