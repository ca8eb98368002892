"""Message envelope codec.

Header layout::

    +--------+------------+------------+--------------+-----------------+
    | Magic  | Device idx | Command id | Payload size |     Payload     |
    | 4 bytes| u32 LE     | u32 LE     | u32 LE       | variable length |
    +--------+------------+------------+--------------+-----------------+

- Magic: ASCII ``ORGB``
- Device idx: target controller, 0 for server-scoped commands
- Payload size: number of bytes following the header
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .errors import FramingError

MAGIC = b"ORGB"
HEADER_SIZE = 16
UINT32_MAX = 0xFFFFFFFF

_HEADER = struct.Struct("<4sIII")


@dataclass(frozen=True)
class Header:
    """A decoded message envelope."""

    device_id: int
    command_id: int
    length: int

    def __repr__(self) -> str:
        return (
            f"Header(device_id={self.device_id}, "
            f"command_id={self.command_id}, length={self.length})"
        )


def encode_header(device_id: int, command_id: int, length: int) -> bytes:
    """Pack the 16-byte envelope for a message.

    Raises:
        ValueError: If a field does not fit in an unsigned 32-bit integer.
    """
    for field_name, value in (
        ("device_id", device_id),
        ("command_id", command_id),
        ("length", length),
    ):
        if not 0 <= value <= UINT32_MAX:
            raise ValueError(f"{field_name} must be 0-{UINT32_MAX}, got {value}")
    return _HEADER.pack(MAGIC, device_id, command_id, length)


def decode_header(data: bytes) -> Header:
    """Unpack a 16-byte envelope.

    Raises:
        FramingError: If the buffer is not 16 bytes or the magic is wrong.
    """
    if len(data) != HEADER_SIZE:
        raise FramingError(
            f"Header must be {HEADER_SIZE} bytes, got {len(data)}"
        )
    magic, device_id, command_id, length = _HEADER.unpack(data)
    if magic != MAGIC:
        raise FramingError(f"Bad magic marker {magic!r}, expected {MAGIC!r}")
    return Header(device_id=device_id, command_id=command_id, length=length)


def build_message(command_id: int, device_id: int = 0, payload: bytes = b"") -> bytes:
    """Wrap a payload in its envelope, ready to write to the socket."""
    return encode_header(device_id, command_id, len(payload)) + payload
