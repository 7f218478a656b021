#!/usr/bin/env python3
"""Parse ``host:port`` / ``[ipv6]:port`` / ``port`` command-line arguments."""

from __future__ import annotations
import re
import socket
from typing import NamedTuple, Optional, Tuple

from .errors import AddressError
from .protocol import DEFAULT_HOST, DEFAULT_REMOTE

__all__ = ["Endpoint", "parse_address", "format_address"]

_IPV4_RE = re.compile(r"^(?:([0-9A-Za-z.\-]*):)?(\d+)$")
_IPV6_RE = re.compile(r"^(?:\[([0-9A-Fa-f:.]*)\]:)?(\d+)$")


class Endpoint(NamedTuple):
    """A UDP endpoint parsed from the command line.

    ``host`` is ``None`` when the user gave only a port.
    """

    host: Optional[str]
    port: int
    family: int = socket.AF_INET

    @property
    def bind_address(self) -> Tuple[str, int]:
        """``(host, port)`` to bind; a missing host means every interface."""
        if self.host:
            return (self.host, self.port)
        return ("::" if self.family == socket.AF_INET6 else DEFAULT_HOST, self.port)

    @property
    def connect_address(self) -> Tuple[str, int]:
        """``(host, port)`` to connect to; a missing host means this machine."""
        if self.host:
            return (self.host, self.port)
        return ("::1" if self.family == socket.AF_INET6 else DEFAULT_REMOTE, self.port)


def parse_address(text: str) -> Endpoint:
    """Parse an endpoint argument.

    Raises:
        AddressError: the text matches neither form or the port is out of range.
    """
    family = socket.AF_INET
    match = _IPV4_RE.match(text)
    if match is None:
        match = _IPV6_RE.match(text)
        family = socket.AF_INET6
    if match is None:
        raise AddressError(f'Unrecognized address: "{text}"')

    host, port_text = match.groups()
    port = int(port_text)
    if not 0 <= port <= 65535:
        raise AddressError(f'Port {port} is out of range in "{text}"')
    return Endpoint(host or None, port, family)


def format_address(host: str, port: int) -> str:
    """Inverse of :func:`parse_address` for display (IPv6 hosts get brackets)."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
