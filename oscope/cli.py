#!/usr/bin/env python3
"""Command‑line entry point::

    oscope listen 9000                   # print what arrives on UDP 9000
    oscope talk 192.168.1.20:8000        # type messages, send them there
    oscope snoop 9000 127.0.0.1:8000     # relay 9000 ⟷ 8000 and print both ways
    oscope help
"""

from __future__ import annotations

import argparse                                    # For CLI parsing
import sys
from typing import List, Optional

# 3rd‑party: coloured terminal output
from colorama import Style, init

from . import __version__
from .address import Endpoint, parse_address
from .errors import AddressError, describe_socket_error
from .listener import OSCListener
from .protocol import BUF_SIZE
from .render import error
from .snooper import OSCSnooper
from .talker import OSCTalker
from .util import LOG, configure_logging

_USAGE = [
    ("oscope listen <address>",
     "Open a UDP port on <address> and print received messages."),
    ("oscope talk <address>",
     "Open a text prompt for sending messages to another piece of software listening on <address>."),
    ("oscope snoop <address1> <address2>",
     "Listen on <address1>, forward everything to <address2> and back, and print it all."),
    ("oscope help",
     "Print this help information."),
]


def help_text() -> str:
    lines = []
    for synopsis, description in _USAGE:
        lines.append(f"{Style.BRIGHT}{synopsis}{Style.RESET_ALL}")
        lines.append(f"  {description}\n")
    lines.append("<address> is host:port, [ipv6-host]:port or just a port.")
    lines.append(f"(oscope version {__version__})")
    return "\n".join(lines)


_ARITY = {"listen": 1, "talk": 1, "snoop": 2, "help": 0}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("oscope",
                                     description="Send, receive and relay OSC over UDP")
    parser.add_argument("action", nargs="?", default="", help="listen | talk | snoop | help")
    parser.add_argument("addresses", nargs="*", help="host:port, [ipv6]:port or port")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log debug details to stderr")
    parser.add_argument("--log-file", default="oscope.log",
                        help="rotating log file ('' to disable)")
    parser.add_argument("--buffer-size", type=int, default=BUF_SIZE,
                        help="largest datagram to read, in bytes")
    return parser


def _bind_failed(exc: OSError, endpoint: Endpoint) -> int:
    LOG.error("Cannot open %s: %s", endpoint, exc)
    print(error(describe_socket_error(exc, endpoint.bind_address)))
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Parse CLI args then run the chosen sub-program.  Returns the exit status."""
    init(autoreset=True)                           # Reset colour after each print
    args = build_parser().parse_args(argv)
    action = args.action.lower()

    # ---- unknown / missing action: explain and list what we support ----
    if action not in _ARITY:
        if action:
            print(f'I don\'t understand the command "{args.action}"\n')
        print("Supported commands:\n")
        print(help_text())
        return 2 if action else 0

    if action == "help":
        print(help_text())
        return 0

    if len(args.addresses) != _ARITY[action]:
        usage = next(s for s, _ in _USAGE if s.split()[1] == action)
        print(error(f"Usage: {usage}"))
        return 2

    try:
        endpoints = [parse_address(a) for a in args.addresses]
    except AddressError as exc:
        print(error(str(exc)))
        return 2

    configure_logging(args.verbose, args.log_file or None)

    if action == "listen":
        try:
            listener = OSCListener(endpoints[0], args.buffer_size)
        except OSError as exc:
            return _bind_failed(exc, endpoints[0])
        listener.start()

    elif action == "talk":
        try:
            talker = OSCTalker(endpoints[0], args.buffer_size)
        except OSError as exc:
            LOG.error("Cannot connect to %s: %s", endpoints[0], exc)
            print(error(describe_socket_error(exc, endpoints[0].connect_address)))
            return 1
        talker.start()

    elif action == "snoop":
        try:
            snooper = OSCSnooper(endpoints[0], endpoints[1], args.buffer_size)
        except OSError as exc:
            return _bind_failed(exc, endpoints[0])
        snooper.start()

    return 0


if __name__ == "__main__":
    sys.exit(main())
