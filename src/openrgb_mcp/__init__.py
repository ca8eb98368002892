"""Client and MCP server for the OpenRGB SDK network protocol."""

from .client import OpenRGBClient
from .models import Color, Device, Zone

__version__ = "0.1.0"
