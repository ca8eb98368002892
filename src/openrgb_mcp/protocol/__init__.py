"""Protocol layer: message envelope, command builders, and response parsing."""

from .header import build_message, decode_header, encode_header
from .commands import Command, build_command
from .errors import ColorCountError, DecodeError, FramingError, ProtocolError
