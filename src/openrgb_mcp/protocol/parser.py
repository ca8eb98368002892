"""Response parsing for server messages."""

from __future__ import annotations

import struct
from enum import IntEnum

from ..models.color import Color
from ..models.device import LED, Device, DeviceType, Mode, Zone, ZoneType
from .errors import DecodeError


class PayloadReader:
    """Sequential cursor over a response payload.

    Every read checks the remaining length first, so a truncated or
    inflated count raises ``DecodeError`` instead of reading past the
    buffer.
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, size: int, what: str = "field") -> bytes:
        if size < 0 or size > self.remaining:
            raise DecodeError(
                f"{what} needs {size} bytes at offset {self._offset}, "
                f"only {self.remaining} left"
            )
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def _unpack(self, fmt: str, what: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt), what))[0]

    def u16(self, what: str = "u16") -> int:
        return self._unpack("<H", what)

    def u32(self, what: str = "u32") -> int:
        return self._unpack("<I", what)

    def i32(self, what: str = "i32") -> int:
        return self._unpack("<i", what)

    def string(self, what: str = "string") -> str:
        """Read a ``length:u16`` prefixed, NUL-terminated string."""
        length = self.u16(f"{what} length")
        raw = self.take(length, what)
        return raw.split(b"\x00")[0].decode("utf-8", errors="replace")

    def color(self) -> Color:
        return Color.from_bytes(self.take(Color.SIZE, "color"))

    def colors(self, what: str = "colors") -> tuple[Color, ...]:
        count = self.u16(f"{what} count")
        return tuple(self.color() for _ in range(count))


def parse_controller_count(payload: bytes) -> int:
    """Parse a controller-count response (a single u32)."""
    reader = PayloadReader(payload)
    count = reader.u32("controller count")
    if reader.remaining:
        raise DecodeError(
            f"Controller count response has {reader.remaining} trailing bytes"
        )
    return count


def _coerce(enum_cls: type[IntEnum], value: int) -> int:
    """Return the enum member for known values, the plain int otherwise."""
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _read_mode(reader: PayloadReader) -> Mode:
    return Mode(
        name=reader.string("mode name"),
        value=reader.i32("mode value"),
        flags=reader.u32("mode flags"),
        speed_min=reader.u32("mode speed_min"),
        speed_max=reader.u32("mode speed_max"),
        colors_min=reader.u32("mode colors_min"),
        colors_max=reader.u32("mode colors_max"),
        speed=reader.u32("mode speed"),
        direction=reader.u32("mode direction"),
        color_mode=reader.u32("mode color_mode"),
        colors=reader.colors("mode colors"),
    )


def _read_zone(reader: PayloadReader) -> dict:
    """Read one zone descriptor. Colors are attached later."""
    zone = {
        "name": reader.string("zone name"),
        "type": _coerce(ZoneType, reader.i32("zone type")),
        "leds_min": reader.u32("zone leds_min"),
        "leds_max": reader.u32("zone leds_max"),
        "leds_count": reader.u32("zone leds_count"),
    }
    matrix_len = reader.u16("zone matrix length")
    if matrix_len:
        height = reader.u32("matrix height")
        width = reader.u32("matrix width")
        if matrix_len != 8 + 4 * height * width:
            raise DecodeError(
                f"Zone {zone['name']!r}: matrix length {matrix_len} does not "
                f"match {height}x{width}"
            )
        raw = reader.take(4 * height * width, "matrix map")
        zone["matrix_height"] = height
        zone["matrix_width"] = width
        zone["matrix_map"] = struct.unpack(f"<{height * width}I", raw)
    return zone


def parse_device(payload: bytes) -> Device:
    """Decode a controller-data response into a ``Device``.

    The decode is all-or-nothing: any inconsistency raises
    ``DecodeError`` and no partial device is returned.
    """
    reader = PayloadReader(payload)

    data_size = reader.u32("data size")
    if data_size != len(payload):
        raise DecodeError(
            f"Controller data declares {data_size} bytes, payload has {len(payload)}"
        )

    device_type = _coerce(DeviceType, reader.i32("device type"))
    name = reader.string("device name")
    description = reader.string("description")
    version = reader.string("version")
    serial = reader.string("serial")
    location = reader.string("location")

    num_modes = reader.u16("mode count")
    active_mode = reader.i32("active mode")
    modes = tuple(_read_mode(reader) for _ in range(num_modes))

    num_zones = reader.u16("zone count")
    zone_fields = [_read_zone(reader) for _ in range(num_zones)]

    num_leds = reader.u16("LED count")
    leds = tuple(
        LED(name=reader.string("LED name"), value=reader.u32("LED value"))
        for _ in range(num_leds)
    )

    colors = reader.colors("device colors")

    if reader.remaining:
        raise DecodeError(
            f"Controller data has {reader.remaining} unconsumed bytes"
        )

    zones = []
    start = 0
    for fields in zone_fields:
        end = start + fields["leds_count"]
        if end > len(colors):
            raise DecodeError(
                f"Zone {fields['name']!r} spans LEDs {start}-{end - 1} but the "
                f"device has {len(colors)} colors"
            )
        zones.append(Zone(colors=colors[start:end], **fields))
        start = end

    return Device(
        name=name,
        type=device_type,
        description=description,
        version=version,
        serial=serial,
        location=location,
        active_mode=active_mode,
        modes=modes,
        zones=tuple(zones),
        leds=leds,
        colors=colors,
    )
