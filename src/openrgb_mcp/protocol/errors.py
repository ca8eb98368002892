"""Exceptions raised by the protocol layer."""


class ProtocolError(Exception):
    """The byte stream does not follow the OpenRGB protocol."""


class FramingError(ProtocolError):
    """A message envelope is corrupt or incomplete.

    The connection is desynchronized after this and must be discarded.
    """


class DecodeError(ProtocolError):
    """A response payload could not be decoded into its structure."""


class ColorCountError(ValueError):
    """A color array does not match the LED count of its target."""
