"""oscope – send, receive and relay OSC messages over UDP.

Importing this package exposes the codec (:func:`oscope.decode`,
:func:`oscope.encode`), the text lexer (:func:`oscope.tokenize`) and the
value model, so the wire format can be used from other programs.  The
command-line tool is started with ``oscope`` or ``python -m oscope``.
"""

__version__ = "1.0.0"

# ------------------------ re-exports ------------------------
from .codec import decode, encode, encode_bundle, encode_message, encode_packet  # noqa: F401
from .errors import AddressError, DecodeError, EncodeError, LexError, OscopeError  # noqa: F401
from .lexer import Command, Token, assemble, parse_line, tokenize  # noqa: F401
from .protocol import IMMEDIATELY, Bundle, Message, Packet, TimeTag  # noqa: F401

# ------------------------ public API ------------------------
__all__: list[str] = [
    "decode", "encode", "encode_message", "encode_bundle", "encode_packet",
    "tokenize", "assemble", "parse_line", "Token", "Command",
    "Message", "Bundle", "Packet", "TimeTag", "IMMEDIATELY",
    "OscopeError", "LexError", "DecodeError", "EncodeError", "AddressError",
]
