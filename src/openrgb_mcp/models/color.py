"""RGB color value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Color:
    """A 24-bit color. On the wire it takes 4 bytes: R, G, B, padding."""

    SIZE: ClassVar[int] = 4

    red: int = 0
    green: int = 0
    blue: int = 0

    def __post_init__(self) -> None:
        for channel in (self.red, self.green, self.blue):
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channels must be 0-255, got {channel}")

    def to_bytes(self) -> bytes:
        return bytes([self.red, self.green, self.blue, 0])

    @classmethod
    def from_bytes(cls, data: bytes) -> Color:
        if len(data) < cls.SIZE:
            raise ValueError(f"Color needs {cls.SIZE} bytes, got {len(data)}")
        return cls(red=data[0], green=data[1], blue=data[2])

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Parse ``#RRGGBB`` (the leading ``#`` is optional)."""
        text = value.strip().lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Expected a color like '#FF8800', got {value!r}")
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"Expected a color like '#FF8800', got {value!r}") from e
        return cls(red=raw[0], green=raw[1], blue=raw[2])

    def to_hex(self) -> str:
        return f"#{self.red:02X}{self.green:02X}{self.blue:02X}"

    def __repr__(self) -> str:
        return f"Color({self.to_hex()})"
