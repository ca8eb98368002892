"""Tests for the client facade against a scripted socket."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from openrgb_mcp.client import OpenRGBClient
from openrgb_mcp.models.color import Color
from openrgb_mcp.protocol.commands import (
    Command,
    build_set_client_name,
    build_update_leds,
    build_update_zone_leds,
)
from openrgb_mcp.protocol.errors import ColorCountError, DecodeError
from openrgb_mcp.protocol.header import HEADER_SIZE, decode_header

RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)


def _connect(sock, **kwargs) -> OpenRGBClient:
    with patch(
        "openrgb_mcp.transport.tcp_connection.socket.create_connection",
        return_value=sock,
    ):
        return OpenRGBClient.connect("127.0.0.1", 6742, **kwargs)


def _commands(sock) -> list[int]:
    return [decode_header(m[:HEADER_SIZE]).command_id for m in sock.sent]


def test_connect_sends_handshake(fake_socket_factory):
    sock = fake_socket_factory()
    client = _connect(sock, name="lighting-test")
    assert client.connected
    assert sock.sent == [build_set_client_name("lighting-test")]


def test_connect_handshake_failure_closes_socket(fake_socket_factory):
    """A failed handshake closes the socket and hands back no client."""
    sock = fake_socket_factory()
    sock.sendall = MagicMock(side_effect=BrokenPipeError("broken pipe"))
    with pytest.raises(BrokenPipeError):
        _connect(sock)
    sock.sendall.assert_called_once()
    assert sock.closed


def test_connect_dial_failure():
    with patch(
        "openrgb_mcp.transport.tcp_connection.socket.create_connection",
        side_effect=ConnectionRefusedError("refused"),
    ):
        with pytest.raises(ConnectionRefusedError):
            OpenRGBClient.connect("127.0.0.1", 6742)


def test_get_controller_count(fake_socket_factory, make_reply):
    sock = fake_socket_factory(
        [make_reply(Command.REQUEST_CONTROLLER_COUNT, b"\x05\x00\x00\x00")]
    )
    client = _connect(sock)
    assert client.get_controller_count() == 5
    assert _commands(sock) == [Command.SET_CLIENT_NAME, Command.REQUEST_CONTROLLER_COUNT]


def test_get_device_controller(fake_socket_factory, make_reply, device_payload):
    sock = fake_socket_factory(
        [make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), device_id=2)]
    )
    client = _connect(sock)
    device = client.get_device_controller(2)
    assert device.name == "Desk Strip"
    assert decode_header(sock.sent[-1][:HEADER_SIZE]).device_id == 2
    assert client.devices == {2: device}


def test_get_device_decode_error_propagates(fake_socket_factory, make_reply, device_payload):
    """A bad payload fails the whole call and caches nothing."""
    sock = fake_socket_factory(
        [make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(trailing=b"\x00"))]
    )
    client = _connect(sock)
    with pytest.raises(DecodeError):
        client.get_device_controller(0)
    assert client.devices == {}


def test_get_devices(fake_socket_factory, make_reply, device_payload):
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_COUNT, b"\x02\x00\x00\x00"),
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(name="A"), 0),
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(name="B"), 1),
    ])
    client = _connect(sock)
    assert [d.name for d in client.get_devices()] == ["A", "B"]
    assert sock.violations == []


def test_update_leds(fake_socket_factory, make_reply, device_payload):
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(zones=(("Strip", 1, 2, None),)), 3),
    ])
    client = _connect(sock)
    client.get_device_controller(3)
    client.update_leds(3, [RED, GREEN])
    assert sock.sent[-1] == build_update_leds(3, [RED, GREEN])


def test_update_leds_wrong_count_writes_nothing(fake_socket_factory, make_reply, device_payload):
    """A mismatched color array is rejected before any byte is sent."""
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), 0),
    ])
    client = _connect(sock)
    client.get_device_controller(0)
    sent_before = list(sock.sent)
    with pytest.raises(ColorCountError):
        client.update_leds(0, [RED])
    assert sock.sent == sent_before


def test_update_leds_fetches_unknown_device(fake_socket_factory, make_reply, device_payload):
    """The device is described first when it has not been seen yet."""
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), 1),
    ])
    client = _connect(sock)
    client.update_leds(1, [RED, GREEN, RED])
    assert _commands(sock) == [
        Command.SET_CLIENT_NAME,
        Command.REQUEST_CONTROLLER_DATA,
        Command.UPDATE_LEDS,
    ]


def test_update_zone_leds(fake_socket_factory, make_reply, device_payload):
    payload = device_payload(zones=(("Top", 1, 2, None), ("Bottom", 1, 1, None)))
    sock = fake_socket_factory([make_reply(Command.REQUEST_CONTROLLER_DATA, payload, 0)])
    client = _connect(sock)
    client.get_device_controller(0)

    client.update_zone_leds(0, 1, [GREEN])
    assert sock.sent[-1] == build_update_zone_leds(0, 1, [GREEN])

    sent_before = list(sock.sent)
    with pytest.raises(ColorCountError):
        client.update_zone_leds(0, 0, [GREEN])
    with pytest.raises(IndexError):
        client.update_zone_leds(0, 2, [GREEN])
    assert sock.sent == sent_before


def test_update_single_led(fake_socket_factory, make_reply, device_payload):
    sock = fake_socket_factory([make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), 0)])
    client = _connect(sock)
    client.get_device_controller(0)
    client.update_single_led(0, 2, RED)
    assert _commands(sock)[-1] == Command.UPDATE_SINGLE_LED
    with pytest.raises(IndexError):
        client.update_single_led(0, 3, RED)


def test_set_custom_mode(fake_socket_factory):
    sock = fake_socket_factory()
    client = _connect(sock)
    client.set_custom_mode(4)
    header = decode_header(sock.sent[-1][:HEADER_SIZE])
    assert header.command_id == Command.SET_CUSTOM_MODE
    assert header.device_id == 4


def test_sequential_requests(fake_socket_factory, make_reply, device_payload):
    """Reply N is fully consumed before request N+1 goes out."""
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_COUNT, b"\x01\x00\x00\x00"),
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), 0),
        make_reply(Command.REQUEST_CONTROLLER_COUNT, b"\x01\x00\x00\x00"),
    ], chunk_size=1)
    client = _connect(sock)
    client.get_controller_count()
    client.get_device_controller(0)
    client.get_controller_count()
    assert sock.violations == []


def test_close_then_use_fails(fake_socket_factory):
    sock = fake_socket_factory()
    with _connect(sock) as client:
        pass
    assert sock.closed
    assert not client.connected
    with pytest.raises(ConnectionError):
        client.get_controller_count()


def test_repr(fake_socket_factory):
    client = _connect(fake_socket_factory(), name="x")
    assert repr(client) == "OpenRGBClient(127.0.0.1:6742, name='x')"


def test_device_list_change_clears_cache(fake_socket_factory, make_reply, device_payload):
    """After the server reports a hotplug, devices are described again before updates."""
    notification = make_reply(Command.DEVICE_LIST_UPDATED, b"")
    sock = fake_socket_factory([
        make_reply(Command.REQUEST_CONTROLLER_DATA, device_payload(), 0),
        notification + make_reply(Command.REQUEST_CONTROLLER_COUNT, b"\x01\x00\x00\x00"),
        make_reply(
            Command.REQUEST_CONTROLLER_DATA,
            device_payload(zones=(("Strip", 1, 5, None),)),
            0,
        ),
    ])
    client = _connect(sock)
    client.get_device_controller(0)

    assert client.get_controller_count() == 1
    assert client.connected
    assert client.devices == {}

    client.update_leds(0, [RED] * 5)
    assert _commands(sock)[-2:] == [Command.REQUEST_CONTROLLER_DATA, Command.UPDATE_LEDS]
