"""High-level client for an OpenRGB SDK server.

Usage::

    with OpenRGBClient.connect("127.0.0.1", 6742) as client:
        for index in range(client.get_controller_count()):
            device = client.get_device_controller(index)
            client.update_leds(index, [Color(255, 0, 0)] * device.led_count)
"""

from __future__ import annotations

import logging
from typing import Sequence

from .models.color import Color
from .models.device import Device
from .protocol.commands import (
    build_request_controller_count,
    build_request_controller_data,
    build_set_client_name,
    build_set_custom_mode,
    build_update_leds,
    build_update_single_led,
    build_update_zone_leds,
)
from .protocol.errors import ColorCountError
from .protocol.parser import parse_controller_count, parse_device
from .transport.tcp_connection import DEFAULT_HOST, DEFAULT_PORT, TCPConnection

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "openrgb-mcp"


class OpenRGBClient:
    """Typed operations over one ``TCPConnection``.

    Devices described through this client are cached per index; LED
    updates are checked against the cached LED counts before anything
    is written.
    """

    def __init__(self, connection: TCPConnection, name: str = DEFAULT_CLIENT_NAME) -> None:
        self._connection = connection
        self._name = name
        self._devices: dict[int, Device] = {}
        connection.on_device_list_updated = self._forget_devices

    @classmethod
    def connect(
        cls,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        name: str = DEFAULT_CLIENT_NAME,
    ) -> OpenRGBClient:
        """Open a connection and announce the client name.

        The connection is closed again if the handshake cannot be sent,
        so a half-initialized client is never returned.

        Raises:
            OSError: If the server cannot be reached or the handshake fails.
        """
        connection = TCPConnection(host, port)
        connection.open()
        try:
            connection.send(build_set_client_name(name))
        except Exception:
            connection.close()
            raise
        logger.info("Registered as %r", name)
        return cls(connection, name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def connected(self) -> bool:
        return self._connection.connected

    @property
    def devices(self) -> dict[int, Device]:
        """Devices described so far, by index."""
        return dict(self._devices)

    def _forget_devices(self) -> None:
        """Drop cached descriptions after the server's device list changed."""
        logger.info("Device list changed, clearing %d cached devices", len(self._devices))
        self._devices.clear()

    def close(self) -> None:
        self._devices.clear()
        self._connection.close()

    def __enter__(self) -> OpenRGBClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── QUERIES ─────────────────────────────────────────────────────

    def get_controller_count(self) -> int:
        """Number of controllers; valid indices are ``0 .. count - 1``."""
        _, payload = self._connection.send_and_receive(build_request_controller_count())
        return parse_controller_count(payload)

    def get_device_controller(self, device_id: int) -> Device:
        """Fetch and decode the description of one controller."""
        _, payload = self._connection.send_and_receive(
            build_request_controller_data(device_id)
        )
        device = parse_device(payload)
        self._devices[device_id] = device
        logger.debug("Described device %d: %r", device_id, device)
        return device

    def get_devices(self) -> list[Device]:
        """Describe every controller the server exposes."""
        return [self.get_device_controller(i) for i in range(self.get_controller_count())]

    def _device(self, device_id: int) -> Device:
        if device_id not in self._devices:
            return self.get_device_controller(device_id)
        return self._devices[device_id]

    # ─── UPDATES (no reply) ──────────────────────────────────────────

    def update_leds(self, device_id: int, colors: Sequence[Color]) -> None:
        """Set every LED of a device.

        Raises:
            ColorCountError: If ``colors`` does not match the device's LED count.
        """
        device = self._device(device_id)
        if len(colors) != len(device.colors):
            raise ColorCountError(
                f"Device {device_id} ({device.name}) has {len(device.colors)} "
                f"LEDs, got {len(colors)} colors"
            )
        self._connection.send(build_update_leds(device_id, colors))

    def update_zone_leds(self, device_id: int, zone_id: int, colors: Sequence[Color]) -> None:
        """Set every LED of one zone.

        Raises:
            IndexError: If the device has no such zone.
            ColorCountError: If ``colors`` does not match the zone's LED count.
        """
        device = self._device(device_id)
        if not 0 <= zone_id < len(device.zones):
            raise IndexError(
                f"Device {device_id} has {len(device.zones)} zones, no zone {zone_id}"
            )
        zone = device.zones[zone_id]
        if len(colors) != zone.leds_count:
            raise ColorCountError(
                f"Zone {zone_id} ({zone.name}) has {zone.leds_count} LEDs, "
                f"got {len(colors)} colors"
            )
        self._connection.send(build_update_zone_leds(device_id, zone_id, colors))

    def update_single_led(self, device_id: int, led_id: int, color: Color) -> None:
        """Set one LED by its index in the device color array."""
        device = self._device(device_id)
        if not 0 <= led_id < len(device.colors):
            raise IndexError(
                f"Device {device_id} has {len(device.colors)} LEDs, no LED {led_id}"
            )
        self._connection.send(build_update_single_led(device_id, led_id, color))

    def set_custom_mode(self, device_id: int) -> None:
        """Put a controller into direct mode so LED updates take effect."""
        self._connection.send(build_set_custom_mode(device_id))
        logger.debug("Device %d switched to direct mode", device_id)

    def __repr__(self) -> str:
        host, port = self._connection.address
        return f"OpenRGBClient({host}:{port}, name={self._name!r})"
