"""MCP server entry point for OpenRGB.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import DEFAULT_CLIENT_NAME, OpenRGBClient
from .models.color import Color
from .transport.tcp_connection import DEFAULT_HOST, DEFAULT_PORT

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "openrgb",
    instructions="Control RGB lighting controllers managed by an OpenRGB SDK server.",
)

# Global connection state
_client: OpenRGBClient | None = None


def _get_client() -> OpenRGBClient:
    """Get the active client, raising if not connected."""
    if _client is None or not _client.connected:
        raise RuntimeError(
            "Not connected to OpenRGB. Use the 'connect' tool first."
        )
    return _client


def _device_index_error(client: OpenRGBClient, device_id: int) -> dict[str, str] | None:
    """Check a controller index against the server's count.

    The server sends no reply for an unknown index, so it must never
    reach a request.
    """
    count = client.get_controller_count()
    if not 0 <= device_id < count:
        if count == 0:
            return {"error": "The server exposes no controllers"}
        return {"error": f"Device index must be 0-{count - 1}"}
    return None


def _parse_colors(colors: list[str]) -> list[Color]:
    return [Color.from_hex(c) for c in colors]


def _summary(index: int, device) -> dict[str, Any]:
    return {
        "index": index,
        "name": device.name,
        "type": device.to_dict()["type"],
        "leds": device.led_count,
        "zones": [
            {"index": i, "name": z.name, "leds": z.leds_count}
            for i, z in enumerate(device.zones)
        ],
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> dict[str, Any]:
    """Connect to an OpenRGB SDK server and register this client.

    Args:
        host: Server address (default 127.0.0.1).
        port: SDK server port (default 6742).
    """
    global _client
    if _client is not None and _client.connected:
        return {"connected": True, "message": "Already connected"}

    _client = OpenRGBClient.connect(host, port, name=DEFAULT_CLIENT_NAME)
    return {
        "connected": True,
        "host": host,
        "port": port,
        "controllers": _client.get_controller_count(),
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the OpenRGB server."""
    global _client
    if _client is not None:
        _client.close()
        _client = None
    return {"disconnected": True}


# ─── DEVICE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def get_controller_count() -> dict[str, int]:
    """Return how many RGB controllers the server exposes."""
    return {"count": _get_client().get_controller_count()}


@mcp.tool()
def list_devices() -> dict[str, Any]:
    """List every controller with its LED and zone counts."""
    client = _get_client()
    devices = client.get_devices()
    return {"devices": [_summary(i, d) for i, d in enumerate(devices)]}


@mcp.tool()
def get_device(device_id: int) -> dict[str, Any]:
    """Read the full description of one controller.

    Args:
        device_id: Controller index, starting at 0.
    """
    client = _get_client()
    error = _device_index_error(client, device_id)
    if error:
        return error
    result = client.get_device_controller(device_id).to_dict()
    result["index"] = device_id
    return result


# ─── LIGHTING TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def update_leds(device_id: int, colors: list[str]) -> dict[str, Any]:
    """Set every LED of a controller.

    Args:
        device_id: Controller index.
        colors: One '#RRGGBB' string per LED, in LED order.
    """
    client = _get_client()
    error = _device_index_error(client, device_id)
    if error:
        return error
    try:
        client.update_leds(device_id, _parse_colors(colors))
    except ValueError as e:
        return {"error": str(e)}
    return {"updated": True, "device_id": device_id, "leds": len(colors)}


@mcp.tool()
def update_zone_leds(device_id: int, zone_id: int, colors: list[str]) -> dict[str, Any]:
    """Set every LED of one zone.

    Args:
        device_id: Controller index.
        zone_id: Zone index within the controller.
        colors: One '#RRGGBB' string per LED in the zone.
    """
    client = _get_client()
    error = _device_index_error(client, device_id)
    if error:
        return error
    try:
        client.update_zone_leds(device_id, zone_id, _parse_colors(colors))
    except (ValueError, IndexError) as e:
        return {"error": str(e)}
    return {"updated": True, "device_id": device_id, "zone_id": zone_id}


@mcp.tool()
def set_device_color(device_id: int, color: str) -> dict[str, Any]:
    """Fill a whole controller with one color.

    Args:
        device_id: Controller index.
        color: '#RRGGBB' color string.
    """
    client = _get_client()
    error = _device_index_error(client, device_id)
    if error:
        return error
    try:
        fill = Color.from_hex(color)
    except ValueError as e:
        return {"error": str(e)}
    device = client.get_device_controller(device_id)
    client.set_custom_mode(device_id)
    client.update_leds(device_id, [fill] * device.led_count)
    return {"updated": True, "device_id": device_id, "color": fill.to_hex()}


@mcp.tool()
def set_zone_color(device_id: int, zone_id: int, color: str) -> dict[str, Any]:
    """Fill one zone with a single color.

    Args:
        device_id: Controller index.
        zone_id: Zone index within the controller.
        color: '#RRGGBB' color string.
    """
    client = _get_client()
    error = _device_index_error(client, device_id)
    if error:
        return error
    try:
        fill = Color.from_hex(color)
    except ValueError as e:
        return {"error": str(e)}
    device = client.get_device_controller(device_id)
    if not 0 <= zone_id < len(device.zones):
        return {"error": f"Zone index must be 0-{len(device.zones) - 1}"}
    zone = device.zones[zone_id]
    client.update_zone_leds(device_id, zone_id, [fill] * zone.leds_count)
    return {"updated": True, "device_id": device_id, "zone": zone.name}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("openrgb://devices")
def resource_devices() -> str:
    """Summary of every controller on the connected server."""
    devices = _get_client().get_devices()
    return json.dumps({"devices": [_summary(i, d) for i, d in enumerate(devices)]})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def lighting_scene(mood: str) -> str:
    """Guide the AI to light every device for a mood or theme.

    Args:
        mood: Theme, e.g. "sunset", "focus", "cyberpunk".
    """
    return f"""Create a lighting scene for "{mood}".
Steps:
- Use list_devices to see the controllers and their zones
- Pick a palette of 2-4 colors that fits the mood
- Use set_zone_color for zones that should be solid
- Use update_zone_leds or update_leds for gradients, one color per LED

Colors are '#RRGGBB' strings."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
