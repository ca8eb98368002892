"""Transport layer: the TCP connection to the OpenRGB server."""

from .tcp_connection import TCPConnection
