#!/usr/bin/env python3
"""Console rendering of decoded packets with *colorama* colours.

Every function returns strings instead of printing so that the shells decide
where output goes (and tests can inspect it).
"""

from __future__ import annotations
import shutil                                  # Terminal width for banners
from datetime import datetime
from typing import List, Optional, Sequence

from colorama import Back, Fore, Style

from .address import format_address
from .codec import decode
from .errors import DecodeError
from .protocol import BLOB_TAG, FLOAT_TAG, Argument, Bundle, Packet, TimeTag
from .util import LOG

__all__ = [
    "format_time", "format_timetag", "format_args", "format_packet",
    "format_datagram", "banner", "error",
]

INDENT = "  "


def format_time(moment: datetime) -> str:
    """``M/D/YYYY HH:MM:SS.mmm`` in local time."""
    return (
        f"{moment.month}/{moment.day}/{moment.year} "
        f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}"
    )


def format_timetag(timetag: TimeTag) -> str:
    if timetag.is_immediate:
        return "immediately"
    try:
        return format_time(datetime.fromtimestamp(timetag.unix))
    except (OverflowError, OSError, ValueError):
        # Outside what the platform clock can represent
        return f"NTP {timetag.seconds}.{timetag.fraction}"


def format_args(args: Sequence[Argument], tags: str) -> str:
    parts = []
    for value, tag in zip(args, tags):
        if tag == FLOAT_TAG:
            parts.append(f"{value:.3f}")
        elif tag == BLOB_TAG:
            parts.append(f"<Blob ({len(value)}B)>")
        elif isinstance(value, str):
            parts.append(f'"{value}"')
        else:
            parts.append(str(value))
    return " ".join(parts)


def format_packet(packet: Packet, indent: int = 0) -> List[str]:
    """One line per message / bundle header, children indented."""
    prefix = INDENT * indent
    if isinstance(packet, Bundle):
        lines = [f"{prefix}{Style.DIM}Bundle ({format_timetag(packet.timetag)}){Style.RESET_ALL}"]
        for sub in packet.packets:
            lines.extend(format_packet(sub, indent + 1))
        return lines

    line = f"{prefix}{Style.BRIGHT}{packet.address}{Style.RESET_ALL}"
    if packet.args:
        line += " " + format_args(packet.args, packet.tags)
    return [line]


def format_datagram(
    data: bytes, host: str, port: int,
    received: Optional[datetime] = None, note: str = "received",
) -> List[str]:
    """Header line plus the decoded tree, or a red line if decoding fails."""
    received = received or datetime.now()
    where = format_address(host, port)
    lines = ["", f"{Fore.BLUE}{where} ({note} {format_time(received)}){Style.RESET_ALL}"]
    try:
        lines.extend(format_packet(decode(data)))
    except DecodeError as exc:
        LOG.warning("Undecodable datagram from %s: %s", where, exc)
        lines.append(error(str(exc)))
    return lines


def banner(text: str) -> str:
    """*text* in inverse video, centred on the terminal."""
    width = shutil.get_terminal_size(fallback=(80, 24)).columns
    pad = max(2, (width - len(text)) / 2)
    left, right = int(pad + 0.5), int(pad)
    return f"{Back.WHITE}{Fore.BLACK}{' ' * left}{text}{' ' * right}{Style.RESET_ALL}"


def error(text: str) -> str:
    return f"{Fore.RED}{text}{Style.RESET_ALL}"
