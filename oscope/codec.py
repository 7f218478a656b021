#!/usr/bin/env python3
"""Binary codec: bytes ⟷ :class:`Message` / :class:`Bundle` trees.

Layout reminder (all integers big-endian, every field 4-byte aligned)::

    message := address-string  ","+tags-string  argument*
    bundle  := "#bundle\\0"  uint32 seconds  uint32 fraction  (int32 size  packet)*

Strings are NUL-terminated and then NUL-padded so that the terminator plus
padding brings the field to a multiple of 4 (an already aligned string still
gets four NUL bytes).  Blobs are an int32 length, the raw bytes, and only as
much padding as needed to realign.
"""

from __future__ import annotations
import struct                                  # Fixed-width big-endian fields
from typing import Iterable, List, Sequence, Tuple

from .errors import DecodeError, EncodeError
from .protocol import (
    BLOB_TAG, BUNDLE_MARKER, FLOAT_TAG, INT32_MAX, INT32_MIN, INT_TAG, MAX_BUNDLE_DEPTH,
    STRING_TAG, Argument, Bundle, Message, Packet, TimeTag, tag_for,
)

__all__ = ["decode", "encode", "encode_message", "encode_bundle", "encode_packet"]

# Pre-compiled field layouts
_INT32 = struct.Struct(">i")
_FLOAT32 = struct.Struct(">f")
_TIMETAG = struct.Struct(">II")


def _padding(length: int) -> int:
    """Bytes needed to bring *length* up to the next multiple of 4."""
    return -length % 4


# ======================================================================
#  decode
# ======================================================================

def decode(buffer: bytes) -> Packet:
    """Decode one datagram into a fresh Message/Bundle tree.

    Raises:
        DecodeError: the buffer is empty, truncated or malformed.
    """
    data = bytes(buffer)               # Accept bytearray / memoryview too
    if not data:
        raise DecodeError("Empty packet")
    return _decode_packet(data, 0, len(data))


def _decode_packet(data: bytes, start: int, end: int, depth: int = 0) -> Packet:
    if data[start:start + len(BUNDLE_MARKER)] == BUNDLE_MARKER:
        if depth >= MAX_BUNDLE_DEPTH:
            raise DecodeError("Bundles nested too deeply", start)
        return _decode_bundle(data, start, end, depth)
    return _decode_message(data, start, end)


def _decode_bundle(data: bytes, start: int, end: int, depth: int) -> Bundle:
    offset = start + len(BUNDLE_MARKER)
    if offset + _TIMETAG.size > end:
        raise DecodeError("Bundle time tag is truncated", offset)
    timetag = TimeTag(*_TIMETAG.unpack_from(data, offset))
    offset += _TIMETAG.size

    packets: List[Packet] = []
    while offset < end:
        if offset + _INT32.size > end:
            raise DecodeError("Bundle element size is truncated", offset)
        (size,) = _INT32.unpack_from(data, offset)
        if size <= 0:
            raise DecodeError(f"Bundle element size must be positive, got {size}", offset)
        offset += _INT32.size
        if offset + size > end:
            raise DecodeError(
                f"Bundle element claims {size} bytes but only {end - offset} remain", offset
            )
        packets.append(_decode_packet(data, offset, offset + size, depth + 1))
        offset += size
    return Bundle(timetag, tuple(packets))


def _decode_message(data: bytes, start: int, end: int) -> Message:
    address, offset = _read_string(data, start, start, end)
    if not address.startswith("/"):
        raise DecodeError(f"Address must start with '/', got {address!r}", start)

    if offset >= end:
        raise DecodeError("Missing type tag string", offset)
    tag_offset = offset
    tag_string, offset = _read_string(data, offset, start, end)
    if not tag_string.startswith(","):
        raise DecodeError(f"Type tag string must start with ',', got {tag_string!r}", tag_offset)
    tags = tag_string[1:]

    args: List[Argument] = []
    for tag in tags:
        value, offset = _read_argument(tag, data, offset, start, end)
        args.append(value)
    # Anything after the last argument is ignored
    return Message(address, tuple(args), tags)


def _read_argument(tag: str, data: bytes, offset: int, start: int, end: int) -> Tuple[Argument, int]:
    if tag == INT_TAG:
        _require(offset, 4, end, "int32 argument")
        return _INT32.unpack_from(data, offset)[0], offset + 4
    if tag == FLOAT_TAG:
        _require(offset, 4, end, "float32 argument")
        return _FLOAT32.unpack_from(data, offset)[0], offset + 4
    if tag == STRING_TAG:
        return _read_string(data, offset, start, end)
    if tag == BLOB_TAG:
        _require(offset, 4, end, "blob size")
        (size,) = _INT32.unpack_from(data, offset)
        if size < 0:
            raise DecodeError(f"Blob size must not be negative, got {size}", offset)
        offset += 4
        _require(offset, size + _padding(size), end, f"blob of {size} bytes")
        return data[offset:offset + size], offset + size + _padding(size)
    raise DecodeError(f"Unsupported type tag {tag!r}", offset)


def _read_string(data: bytes, offset: int, start: int, end: int) -> Tuple[str, int]:
    """Read a NUL-terminated string; return it and the offset past its padding.

    Padding is measured from *start* (the beginning of the enclosing packet)
    since bundle elements are themselves aligned.
    """
    nul = data.find(b"\x00", offset, end)
    if nul < 0:
        raise DecodeError("String is not NUL-terminated", offset)
    stop = nul + 1
    stop += _padding(stop - start)
    if stop > end:
        raise DecodeError("String padding runs past the end of the packet", offset)
    try:
        text = data[offset:nul].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"String is not valid UTF-8: {exc.reason}", offset) from exc
    return text, stop


def _require(offset: int, length: int, end: int, what: str) -> None:
    if offset + length > end:
        raise DecodeError(f"Packet is truncated inside {what}", offset)


# ======================================================================
#  encode
# ======================================================================

def encode(address: str, values: Iterable[Argument]) -> bytes:
    """Encode an address and its ordered argument values as a message.

    Tags are derived from the runtime type of each value.

    Raises:
        EncodeError: bad address or a value with no wire representation.
    """
    values = tuple(values)
    tags = "".join(tag_for(v) for v in values)
    return _encode_message(address, values, tags)


def encode_message(message: Message) -> bytes:
    """Encode a :class:`Message`, checking that its tags describe its args."""
    if len(message.tags) != len(message.args):
        raise EncodeError(
            f"Message has {len(message.tags)} type tags but {len(message.args)} arguments"
        )
    for index, (tag, value) in enumerate(zip(message.tags, message.args)):
        actual = tag_for(value)
        if tag != actual:
            raise EncodeError(
                f"Argument {index} is tagged {tag!r} but holds a {type(value).__name__}"
            )
    return _encode_message(message.address, message.args, message.tags)


def encode_bundle(bundle: Bundle) -> bytes:
    """Encode a :class:`Bundle` and, recursively, everything inside it."""
    seconds, fraction = bundle.timetag
    try:
        out = bytearray(BUNDLE_MARKER + _TIMETAG.pack(seconds, fraction))
    except struct.error as exc:
        raise EncodeError(f"Time tag {tuple(bundle.timetag)} does not fit in two uint32 words") from exc
    for packet in bundle.packets:
        element = encode_packet(packet)
        out += _INT32.pack(len(element))
        out += element
    return bytes(out)


def encode_packet(packet: Packet) -> bytes:
    if isinstance(packet, Bundle):
        return encode_bundle(packet)
    if isinstance(packet, Message):
        return encode_message(packet)
    raise EncodeError(f"Cannot encode {type(packet).__name__} as a packet")


def _encode_message(address: str, values: Sequence[Argument], tags: str) -> bytes:
    if not isinstance(address, str) or not address.startswith("/"):
        raise EncodeError(f"Address must start with '/', got {address!r}")

    out = bytearray(_encode_string(address, "address"))
    out += _encode_string("," + tags, "type tags")
    for tag, value in zip(tags, values):
        out += _encode_argument(tag, value)
    return bytes(out)


def _encode_argument(tag: str, value: Argument) -> bytes:
    if tag == INT_TAG:
        if not INT32_MIN <= value <= INT32_MAX:
            raise EncodeError(f"Integer {value} does not fit in 32 bits")
        return _INT32.pack(value)
    if tag == FLOAT_TAG:
        try:
            return _FLOAT32.pack(value)
        except OverflowError as exc:
            raise EncodeError(f"Float {value} does not fit in 32 bits") from exc
    if tag == STRING_TAG:
        return _encode_string(value, "string argument")
    if tag == BLOB_TAG:
        blob = bytes(value)
        if len(blob) > INT32_MAX:
            raise EncodeError(f"Blob of {len(blob)} bytes is too large")
        return _INT32.pack(len(blob)) + blob + b"\x00" * _padding(len(blob))
    raise EncodeError(f"Unsupported type tag {tag!r}")


def _encode_string(text: str, what: str) -> bytes:
    try:
        raw = text.encode("utf-8")
    except UnicodeEncodeError as exc:          # Lone surrogates from "\ud800"
        raise EncodeError(f"The {what} is not valid UTF-8 text: {exc.reason}") from exc
    if b"\x00" in raw:
        raise EncodeError(f"The {what} must not contain NUL characters")
    # Always at least one NUL, then pad to a multiple of 4
    return raw + b"\x00" * (4 - len(raw) % 4)
