#!/usr/bin/env python3
"""``oscope talk``: type OSC messages at a prompt and send them.

Each input line goes through the lexer, becomes a :class:`Message`, is
encoded and sent on a connected UDP socket.  Anything the remote end sends
back is printed by a background thread.

Lines look like::

    /synth/freq 440.5 "lead" 3      # address, then float / string / int
    :quit                            # shell command, never sent
"""

from __future__ import annotations

import socket                                      # Low‑level UDP API
import sys                                         # Needed for prompt redraw
import threading                                   # Background listener thread
from typing import Callable, List, Optional, TextIO, Tuple

from .address import Endpoint, format_address
from .codec import encode_message
from .errors import EncodeError, LexError, describe_socket_error
from .lexer import Command, parse_line
from .protocol import BUF_SIZE
from .render import banner, error, format_datagram
from .util import LOG

PROMPT = "> "

SYNTAX_HELP = """\
Type an address followed by arguments, separated by spaces:
  /path/to/thing 1 2.5 3f "text"
    1       int32       2.5, .5, 3f   float32       "text"   string
Commands:
  :help   show this text
  :quit   leave (also :exit or Ctrl-D)"""


class OSCTalker:
    """Interactive sender bound to one remote endpoint."""

    def __init__(
        self, endpoint: Endpoint, buf_size: int = BUF_SIZE,
        out: Optional[TextIO] = None, read_line: Callable[[str], str] = input,
    ) -> None:
        self.remote: Tuple[str, int] = endpoint.connect_address
        self.buf_size = buf_size
        self.out = out or sys.stdout
        self.read_line = read_line

        # connect() on UDP only fixes the peer; failures show up on send/recv
        self.sock = socket.socket(endpoint.family, socket.SOCK_DGRAM)
        try:
            self.sock.connect(self.remote)
        except OSError:
            self.sock.close()
            raise

        self.running = threading.Event()
        self.running.set()

    # ================================================================== main ===
    def start(self) -> None:
        """Blocking run‑loop: read stdin while a thread prints replies."""
        self._emit([banner(f"Sending OSC to {format_address(*self.remote)}")])
        LOG.info("Talking to %s", format_address(*self.remote))

        threading.Thread(target=self._recv_loop, daemon=True).start()
        try:
            while self.running.is_set():
                try:
                    line = self.read_line(PROMPT)
                except EOFError:                          # Ctrl‑D on *nix
                    break
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()
            LOG.info("Disconnected")

    def stop(self) -> None:
        self.running.clear()
        self.sock.close()

    # ---------------------------------------------------------------- input
    def handle_line(self, line: str) -> bool:
        """Process one input line.  Returns False when the session should end."""
        try:
            parsed = parse_line(line)
        except LexError as exc:
            self._emit([error(str(exc))])
            return True

        if parsed is None:                                # Blank line
            return True
        if isinstance(parsed, Command):
            return self._handle_command(parsed.name)

        try:
            data = encode_message(parsed)
        except EncodeError as exc:
            self._emit([error(str(exc))])
            return True
        self._send(data)
        return True

    def _handle_command(self, name: str) -> bool:
        match name.lower():
            case "quit" | "exit":
                return False
            case "help":
                self._emit([SYNTAX_HELP])
            case _:
                self._emit([error(f"Unknown command :{name} (try :help)")])
        return True

    # ---------------------------------------------------------------- networking
    def _send(self, data: bytes) -> None:
        try:
            self.sock.send(data)
            LOG.debug("Sent %d bytes to %s", len(data), format_address(*self.remote))
        except OSError as exc:
            LOG.error("Send failed: %s", exc)
            self._emit([error(describe_socket_error(exc, self.remote))])

    def _recv_loop(self) -> None:
        """Background thread – prints replies then redraws the prompt."""
        while self.running.is_set():
            try:
                data, peer = self.sock.recvfrom(self.buf_size)
            except ConnectionRefusedError as exc:         # ICMP port unreachable
                LOG.warning("Remote refused: %s", exc)
                self._emit(["\r" + error(describe_socket_error(exc, self.remote))], prompt=True)
                continue
            except OSError:                               # Socket closed
                break
            self._emit(["\r"] + format_datagram(data, peer[0], peer[1]), prompt=True)

    def _emit(self, lines: List[str], prompt: bool = False) -> None:
        self.out.write("\n".join(lines) + "\n")
        if prompt and self.running.is_set():
            # Prompt re‑paint so the user's current input line isn't lost
            self.out.write(PROMPT)
        self.out.flush()
