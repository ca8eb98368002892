"""Command identifiers and request builders.

Every builder returns a complete message (envelope + payload) ready to
be written to the server socket.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Sequence

from ..models.color import Color
from .header import build_message

MAX_COLORS = 0xFFFF


class Command(IntEnum):
    """Packet identifiers understood by the OpenRGB SDK server."""

    REQUEST_CONTROLLER_COUNT = 0
    REQUEST_CONTROLLER_DATA = 1
    REQUEST_PROTOCOL_VERSION = 40
    SET_CLIENT_NAME = 50
    DEVICE_LIST_UPDATED = 100
    RESIZE_ZONE = 1000
    UPDATE_LEDS = 1050
    UPDATE_ZONE_LEDS = 1051
    UPDATE_SINGLE_LED = 1052
    SET_CUSTOM_MODE = 1100
    UPDATE_MODE = 1101


def build_command(command: Command, device_id: int = 0, payload: bytes = b"") -> bytes:
    """Build a single message for a command."""
    return build_message(command.value, device_id, payload)


def encode_colors(colors: Sequence[Color]) -> bytes:
    """Encode a color array as ``num_colors:u16`` followed by the records.

    Raises:
        ValueError: If there are more colors than the count field holds.
    """
    if len(colors) > MAX_COLORS:
        raise ValueError(f"At most {MAX_COLORS} colors per update, got {len(colors)}")
    return struct.pack("<H", len(colors)) + b"".join(c.to_bytes() for c in colors)


def build_set_client_name(name: str) -> bytes:
    """Build the handshake announcing this client's name.

    The server reads the name as a C string, so it is NUL-terminated
    UTF-8 and may not contain a NUL itself.
    """
    if "\x00" in name:
        raise ValueError(f"Client name may not contain NUL bytes: {name!r}")
    payload = name.encode("utf-8") + b"\x00"
    return build_command(Command.SET_CLIENT_NAME, 0, payload)


def build_request_controller_count() -> bytes:
    return build_command(Command.REQUEST_CONTROLLER_COUNT)


def build_request_controller_data(device_id: int) -> bytes:
    """Build a request for the full description of one controller."""
    return build_command(Command.REQUEST_CONTROLLER_DATA, device_id)


def build_update_leds(device_id: int, colors: Sequence[Color]) -> bytes:
    """Build a device-level LED update.

    Payload: ``data_size:u32``, ``num_colors:u16``, colors. ``data_size``
    counts the bytes after itself.
    """
    block = encode_colors(colors)
    payload = struct.pack("<I", len(block)) + block
    return build_command(Command.UPDATE_LEDS, device_id, payload)


def build_update_zone_leds(device_id: int, zone_id: int, colors: Sequence[Color]) -> bytes:
    """Build a zone-level LED update.

    Payload: ``data_size:u32``, ``zone_index:u32``, ``num_colors:u16``,
    colors.
    """
    if zone_id < 0:
        raise ValueError(f"Zone index must be non-negative, got {zone_id}")
    block = struct.pack("<I", zone_id) + encode_colors(colors)
    payload = struct.pack("<I", len(block)) + block
    return build_command(Command.UPDATE_ZONE_LEDS, device_id, payload)


def build_update_single_led(device_id: int, led_id: int, color: Color) -> bytes:
    """Build an update for one LED: ``led_index:i32`` plus one color."""
    payload = struct.pack("<i", led_id) + color.to_bytes()
    return build_command(Command.UPDATE_SINGLE_LED, device_id, payload)


def build_set_custom_mode(device_id: int) -> bytes:
    """Build a request switching the controller to direct (software) control."""
    return build_command(Command.SET_CUSTOM_MODE, device_id)
