"""Controller description models.

A ``Device`` is produced by decoding a controller-data response. All
models are frozen; sequences are stored as tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .color import Color


class DeviceType(IntEnum):
    """Controller category as reported by the server."""

    MOTHERBOARD = 0
    DRAM = 1
    GPU = 2
    COOLER = 3
    LEDSTRIP = 4
    KEYBOARD = 5
    MOUSE = 6
    MOUSEMAT = 7
    HEADSET = 8
    HEADSET_STAND = 9
    GAMEPAD = 10
    LIGHT = 11
    SPEAKER = 12
    VIRTUAL = 13
    STORAGE = 14
    CASE = 15
    MICROPHONE = 16
    ACCESSORY = 17
    KEYPAD = 18
    UNKNOWN = 19


class ZoneType(IntEnum):
    """Physical arrangement of the LEDs in a zone."""

    SINGLE = 0
    LINEAR = 1
    MATRIX = 2


def _enum_name(enum_cls: type[IntEnum], value: int) -> str:
    try:
        return enum_cls(value).name.lower()
    except ValueError:
        return str(value)


@dataclass(frozen=True)
class LED:
    """A single addressable LED."""

    name: str
    value: int = 0


@dataclass(frozen=True)
class Mode:
    """A lighting effect the controller supports."""

    name: str
    value: int = 0
    flags: int = 0
    speed_min: int = 0
    speed_max: int = 0
    colors_min: int = 0
    colors_max: int = 0
    speed: int = 0
    direction: int = 0
    color_mode: int = 0
    colors: tuple[Color, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "speed": self.speed,
            "direction": self.direction,
            "colors": [c.to_hex() for c in self.colors],
        }


@dataclass(frozen=True)
class Zone:
    """A named group of LEDs within a device.

    ``colors`` is the zone's slice of the device color array, so its
    length always equals ``leds_count``.
    """

    name: str
    type: int = ZoneType.SINGLE
    leds_min: int = 0
    leds_max: int = 0
    leds_count: int = 0
    matrix_height: int = 0
    matrix_width: int = 0
    matrix_map: tuple[int, ...] = ()
    colors: tuple[Color, ...] = ()

    def to_dict(self) -> dict:
        d = {
            "name": self.name,
            "type": _enum_name(ZoneType, self.type),
            "leds_count": self.leds_count,
            "leds_min": self.leds_min,
            "leds_max": self.leds_max,
            "colors": [c.to_hex() for c in self.colors],
        }
        if self.matrix_height or self.matrix_width:
            d["matrix"] = {"height": self.matrix_height, "width": self.matrix_width}
        return d


@dataclass(frozen=True)
class Device:
    """One RGB controller exposed by the server."""

    name: str
    type: int = DeviceType.UNKNOWN
    description: str = ""
    version: str = ""
    serial: str = ""
    location: str = ""
    active_mode: int = 0
    modes: tuple[Mode, ...] = ()
    zones: tuple[Zone, ...] = ()
    leds: tuple[LED, ...] = ()
    colors: tuple[Color, ...] = ()

    @property
    def led_count(self) -> int:
        return len(self.colors)

    def to_dict(self) -> dict:
        """Convert the device to a JSON-serializable dictionary."""
        return {
            "name": self.name,
            "type": _enum_name(DeviceType, self.type),
            "description": self.description,
            "version": self.version,
            "serial": self.serial,
            "location": self.location,
            "active_mode": self.active_mode,
            "modes": [m.to_dict() for m in self.modes],
            "zones": [z.to_dict() for z in self.zones],
            "leds": [led.name for led in self.leds],
            "colors": [c.to_hex() for c in self.colors],
        }

    def __repr__(self) -> str:
        return (
            f"Device(name={self.name!r}, zones={len(self.zones)}, "
            f"leds={len(self.leds)})"
        )
