"""Shared fixtures: a scripted socket and controller-data payload builder."""

from __future__ import annotations

import struct
import time

import pytest

from openrgb_mcp.protocol.commands import Command
from openrgb_mcp.protocol.header import HEADER_SIZE, build_message, decode_header

REPLYING_COMMANDS = {Command.REQUEST_CONTROLLER_COUNT, Command.REQUEST_CONTROLLER_DATA}


class FakeSocket:
    """Stands in for a connected stream socket.

    Each request that expects a reply loads the next scripted reply into
    the receive buffer. Sending a request while bytes of the previous
    reply are still unread is recorded as an interleaving violation.
    """

    def __init__(self, replies: list[bytes] | None = None, chunk_size: int = 7) -> None:
        self.replies = list(replies or [])
        self.chunk_size = chunk_size
        self.sent: list[bytes] = []
        self.closed = False
        self.violations: list[str] = []
        self._buffer = bytearray()

    def settimeout(self, value) -> None:
        pass

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError("Bad file descriptor")
        header = decode_header(data[:HEADER_SIZE])
        self.sent.append(bytes(data))
        if header.command_id in REPLYING_COMMANDS:
            if self._buffer:
                self.violations.append(
                    f"command {header.command_id} sent with {len(self._buffer)} unread bytes"
                )
            if self.replies:
                self._buffer.extend(self.replies.pop(0))

    def recv(self, size: int) -> bytes:
        if self.closed:
            raise OSError("Bad file descriptor")
        time.sleep(0)
        n = min(size, self.chunk_size, len(self._buffer))
        chunk = bytes(self._buffer[:n])
        del self._buffer[:n]
        return chunk

    def close(self) -> None:
        self.closed = True


def pack_string(text: str) -> bytes:
    raw = text.encode("utf-8") + b"\x00"
    return struct.pack("<H", len(raw)) + raw


def pack_colors(colors: list[tuple[int, int, int]]) -> bytes:
    return struct.pack("<H", len(colors)) + b"".join(bytes([r, g, b, 0]) for r, g, b in colors)


def pack_mode(name: str, value: int = 0, colors=()) -> bytes:
    return (
        pack_string(name)
        + struct.pack("<iIIIIIIII", value, 0, 0, 100, 0, 0, 50, 0, 1)
        + pack_colors(list(colors))
    )


def pack_zone(name: str, zone_type: int, leds_count: int, matrix=None) -> bytes:
    data = pack_string(name) + struct.pack("<iIII", zone_type, 0, leds_count, leds_count)
    if matrix is None:
        return data + struct.pack("<H", 0)
    height, width = matrix
    cells = list(range(height * width))
    body = struct.pack("<II", height, width) + struct.pack(f"<{len(cells)}I", *cells)
    return data + struct.pack("<H", len(body)) + body


def build_device_payload(
    name: str = "Desk Strip",
    device_type: int = 4,
    zones=(("Strip", 1, 3, None),),
    modes=(("Direct", 0, ()),),
    colors=None,
    data_size: int | None = None,
    trailing: bytes = b"",
) -> bytes:
    """Encode a controller-data response payload.

    ``zones`` holds ``(name, type, leds_count, matrix)`` tuples where
    ``matrix`` is ``(height, width)`` or None.
    """
    total_leds = sum(z[2] for z in zones)
    if colors is None:
        colors = [(i, 255 - i, i * 2 % 256) for i in range(total_leds)]

    body = struct.pack("<i", device_type)
    for text in (name, "Test controller", "1.0", "SN-0001", "HID: /dev/hidraw0"):
        body += pack_string(text)
    body += struct.pack("<H", len(modes)) + struct.pack("<i", 0)
    for mode_name, value, mode_colors in modes:
        body += pack_mode(mode_name, value, mode_colors)
    body += struct.pack("<H", len(zones))
    for zone_name, zone_type, leds_count, matrix in zones:
        body += pack_zone(zone_name, zone_type, leds_count, matrix)
    body += struct.pack("<H", total_leds)
    for i in range(total_leds):
        body += pack_string(f"LED {i + 1}") + struct.pack("<I", i)
    body += pack_colors(list(colors))
    body += trailing

    size = 4 + len(body) if data_size is None else data_size
    return struct.pack("<I", size) + body


def reply(command: Command, payload: bytes, device_id: int = 0) -> bytes:
    """A full server reply message."""
    return build_message(command.value, device_id, payload)


@pytest.fixture
def device_payload():
    return build_device_payload


@pytest.fixture
def make_reply():
    return reply


@pytest.fixture
def fake_socket_factory():
    return FakeSocket
