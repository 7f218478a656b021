#!/usr/bin/env python3
"""Shared constants and the value model used by the codec, lexer and shell.

Everything that travels over the network is described by the types here so
that the encoder, the decoder and the text lexer never disagree on what an
argument, a message or a bundle is.
"""

from __future__ import annotations       # Postponed annotation evaluation (PEP 563)
import time                              # Wall clock for TimeTag.now()
from dataclasses import dataclass        # Immutable records for Message / Bundle
from datetime import datetime, timezone
from typing import NamedTuple, Tuple, Union

from .errors import EncodeError

# --- Network configuration -------------------------------------------------
BUF_SIZE: int = 65535         # Largest UDP payload we read (bytes)
DEFAULT_HOST: str = "0.0.0.0" # Bind address when only a port is given
DEFAULT_REMOTE: str = "127.0.0.1"  # Connect address when only a port is given

# --- Wire constants --------------------------------------------------------
BUNDLE_MARKER: bytes = b"#bundle\x00"    # First 8 bytes of every bundle
NTP_OFFSET: int = 2208988800             # Seconds between 1900-01-01 and 1970-01-01
FRACTION_SCALE: int = 1 << 32            # Fractional seconds unit (1/2**32 s)
MAX_BUNDLE_DEPTH: int = 256              # Deepest bundle nesting decode() accepts

INT32_MIN: int = -(1 << 31)
INT32_MAX: int = (1 << 31) - 1

# --- Type tags -------------------------------------------------------------
INT_TAG    = "i"      # 32-bit big-endian two's complement integer
FLOAT_TAG  = "f"      # 32-bit big-endian IEEE-754 float
STRING_TAG = "s"      # NUL-terminated, 4-byte padded text
BLOB_TAG   = "b"      # int32 size + raw bytes + padding

TAGS: str = INT_TAG + FLOAT_TAG + STRING_TAG + BLOB_TAG

Argument = Union[int, float, str, bytes]


def tag_for(value: object) -> str:
    """Return the type tag character for *value*.

    ``bool`` is rejected even though it subclasses ``int``: the protocol's
    true/false tags are not supported.
    """
    if isinstance(value, bool):
        raise EncodeError(f"Unsupported argument type: {type(value).__name__}")
    if isinstance(value, int):
        return INT_TAG
    if isinstance(value, float):
        return FLOAT_TAG
    if isinstance(value, str):
        return STRING_TAG
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BLOB_TAG
    raise EncodeError(f"Unsupported argument type: {type(value).__name__}")


# --- Time tags -------------------------------------------------------------

class TimeTag(NamedTuple):
    """NTP timestamp: whole seconds since 1900 plus a 1/2**32 fraction."""

    seconds: int
    fraction: int

    @property
    def unix(self) -> float:
        """Seconds since the Unix epoch (may be negative)."""
        return self.seconds - NTP_OFFSET + self.fraction / FRACTION_SCALE

    @property
    def is_immediate(self) -> bool:
        return (self.seconds, self.fraction) <= (0, 1)

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.unix, tz=timezone.utc)

    @classmethod
    def from_unix(cls, timestamp: float) -> "TimeTag":
        whole = int(timestamp // 1)
        fraction = int(round((timestamp - whole) * FRACTION_SCALE))
        if fraction >= FRACTION_SCALE:      # Rounding spilled into the next second
            whole, fraction = whole + 1, 0
        return cls(whole + NTP_OFFSET, fraction)

    @classmethod
    def now(cls) -> "TimeTag":
        return cls.from_unix(time.time())


IMMEDIATELY = TimeTag(0, 1)


# --- Packet tree -----------------------------------------------------------

@dataclass(frozen=True)
class Message:
    """An addressed, type-tagged, ordered list of arguments.

    ``tags`` must match ``args`` one-to-one; the constructor does not check
    this, the encoder does.  Use :meth:`build` to derive the tags.
    """

    address: str
    args: Tuple[Argument, ...] = ()
    tags: str = ""

    @classmethod
    def build(cls, address: str, *args: Argument) -> "Message":
        return cls(address, tuple(args), "".join(tag_for(a) for a in args))


@dataclass(frozen=True)
class Bundle:
    """A timestamped group of messages and/or nested bundles."""

    timetag: TimeTag
    packets: Tuple["Packet", ...] = ()


Packet = Union[Message, Bundle]
