"""Data models for colors and controller descriptions."""

from .color import Color
from .device import (
    Device,
    DeviceType,
    LED,
    Mode,
    Zone,
    ZoneType,
)
