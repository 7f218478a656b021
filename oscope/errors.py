#!/usr/bin/env python3
"""Exception types shared by the codec, the lexer and the shell.

Every error raised on purpose by this package derives from
:class:`OscopeError`, so the shell can report any of them with a single
``except`` clause and carry on with the next datagram or input line.
"""

from __future__ import annotations
import errno
from typing import Optional, Tuple

__all__ = [
    "OscopeError", "LexError", "DecodeError", "EncodeError", "AddressError",
    "describe_socket_error",
]


class OscopeError(Exception):
    """Base class for every error this package raises."""


class LexError(OscopeError):
    """A line of typed text contains something the lexer does not understand."""

    def __init__(self, message: str, char: Optional[str] = None, column: Optional[int] = None) -> None:
        super().__init__(message)
        self.char = char        # Offending character (None for assembly errors)
        self.column = column    # 0-based position inside the line


class DecodeError(OscopeError):
    """A datagram is truncated or structurally malformed."""

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)
        self.offset = offset


class EncodeError(OscopeError):
    """A message cannot be represented on the wire."""


class AddressError(OscopeError, ValueError):
    """A ``host:port`` command-line argument could not be parsed."""


# ----------------------------------------------------------------------
# socket failures ⟶ user-facing text
# ----------------------------------------------------------------------

def describe_socket_error(exc: OSError, endpoint: Tuple[str, int]) -> str:
    """Turn a bind/connect/send failure into the message shown to the user."""
    host, port = endpoint[0], endpoint[1]
    if exc.errno == errno.EADDRINUSE:
        return f"Error: Another program is already listening to the UDP socket {host}:{port}"
    if exc.errno == errno.EADDRNOTAVAIL:
        return f"Error: The address {host}:{port} is not available on this machine"
    if exc.errno == errno.ECONNREFUSED:
        return f"Error: Could not connect to the remote port {host}:{port}"
    return f"Error: {exc.strerror or exc}"
