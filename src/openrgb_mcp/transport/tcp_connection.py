"""TCP connection to the OpenRGB SDK server.

The protocol carries no message ids, so only one request may be in
flight per socket. A lock spans each write and, when a reply is
expected, the read of that reply.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from ..protocol.commands import Command
from ..protocol.errors import FramingError
from ..protocol.header import HEADER_SIZE, Header, decode_header

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6742
CONNECT_TIMEOUT = 5.0


class TCPConnection:
    """Manages the stream socket to the server.

    Usage::

        conn = TCPConnection("127.0.0.1", 6742)
        conn.open()
        header, payload = conn.send_and_receive(message)
        conn.close()
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        connect_timeout: float | None = CONNECT_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._sock: socket.socket | None = None
        self._lock = threading.Lock()
        self.on_device_list_updated: Callable[[], None] | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def address(self) -> tuple[str, int]:
        return self._host, self._port

    def open(self) -> None:
        """Dial the server.

        Raises:
            OSError: If the connection cannot be established.
        """
        if self._sock is not None:
            return
        sock = socket.create_connection(
            (self._host, self._port), timeout=self._connect_timeout
        )
        # Reads block without a deadline once connected.
        sock.settimeout(None)
        self._sock = sock
        logger.info("Connected to OpenRGB server at %s:%d", self._host, self._port)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            logger.info("Disconnected from %s:%d", self._host, self._port)

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise ConnectionError("Not connected to OpenRGB server")
        return self._sock

    def _write(self, data: bytes) -> None:
        self._require_socket().sendall(data)

    def _read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            FramingError: If the peer closes the stream first.
        """
        sock = self._require_socket()
        buf = bytearray()
        while len(buf) < size:
            chunk = sock.recv(size - len(buf))
            if not chunk:
                raise FramingError(
                    f"Connection closed after {len(buf)} of {size} bytes"
                )
            buf.extend(chunk)
        return bytes(buf)

    def _read_message(self) -> tuple[Header, bytes]:
        header = decode_header(self._read_exact(HEADER_SIZE))
        payload = self._read_exact(header.length) if header.length else b""
        logger.debug(
            "Received command %d for device %d (%d bytes)",
            header.command_id,
            header.device_id,
            header.length,
        )
        return header, payload

    def send(self, data: bytes) -> None:
        """Write one message that has no reply.

        Raises:
            ConnectionError: If not connected.
            OSError: If the write fails.
        """
        with self._lock:
            self._write(data)
        logger.debug("Sent %d bytes", len(data))

    def send_and_receive(self, data: bytes) -> tuple[Header, bytes]:
        """Write one request and read its reply.

        The reply must carry the same command id as the request. Device
        list notifications pushed by the server ahead of the reply are
        consumed and reported through ``on_device_list_updated``. Any
        framing fault closes the connection before being re-raised.

        Returns:
            The decoded reply header and its payload.

        Raises:
            ConnectionError: If not connected.
            FramingError: If the reply is corrupt, truncated or mismatched.
            OSError: If the socket fails.
        """
        request = decode_header(data[:HEADER_SIZE])
        with self._lock:
            self._write(data)
            logger.debug(
                "Sent command %d for device %d (%d bytes)",
                request.command_id,
                request.device_id,
                request.length,
            )
            try:
                header, payload = self._read_message()
                while (
                    header.command_id == Command.DEVICE_LIST_UPDATED
                    and request.command_id != Command.DEVICE_LIST_UPDATED
                ):
                    logger.info("Server reported a device list change")
                    if self.on_device_list_updated is not None:
                        self.on_device_list_updated()
                    header, payload = self._read_message()
                if header.command_id != request.command_id:
                    raise FramingError(
                        f"Expected reply to command {request.command_id}, "
                        f"got command {header.command_id}"
                    )
            except FramingError:
                self.close()
                raise
        return header, payload

    def __enter__(self) -> TCPConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
