#!/usr/bin/env python3
"""``oscope listen``: bind a UDP port and print every datagram it receives.

Datagrams are read on a background thread and queued; a single processing
loop decodes and prints them one at a time, so a malformed packet only costs
one red line and the listener carries on.
"""

from __future__ import annotations

import queue                          # Thread‑safe FIFO between recv‑thread & main
import socket                         # UDP socket operations
import sys
import threading                      # Receiver thread + shutdown flag
from typing import List, Optional, TextIO, Tuple

from .address import Endpoint, format_address
from .protocol import BUF_SIZE
from .render import banner, format_datagram
from .util import LOG, get_local_ip


class OSCListener:
    """Receive-and-print loop around one bound UDP socket."""

    def __init__(self, endpoint: Endpoint, buf_size: int = BUF_SIZE, out: Optional[TextIO] = None) -> None:
        self.endpoint = endpoint
        self.buf_size = buf_size
        self.out = out or sys.stdout

        # ------ bind socket (OSError propagates: nothing to do without it) ------
        self.sock = socket.socket(endpoint.family, socket.SOCK_DGRAM)
        try:
            self.sock.bind(endpoint.bind_address)
        except OSError:
            self.sock.close()
            raise

        # recv‑thread pushes (datagram, peer); the processing loop pops.
        self.recv_q: "queue.Queue[Tuple[bytes, Tuple[str, int]]]" = queue.Queue()

        self.running = threading.Event()
        self.running.set()

    @property
    def address(self) -> Tuple[str, int]:
        """The ``(host, port)`` actually bound (useful when port 0 was asked for)."""
        return self.sock.getsockname()[:2]

    # ================================================================= main ===
    def start(self) -> None:
        """Blocking run-loop; returns on Ctrl-C or :meth:`stop`."""
        host, port = self.address
        text = f"Listening for OSC on {format_address(host, port)}"
        if host in ("0.0.0.0", "::"):
            text += f" (this machine is {get_local_ip()})"
        self._emit([banner(text)])
        LOG.info("Listening on %s", format_address(host, port))

        threading.Thread(target=self._recv_loop, daemon=True).start()
        try:
            self._process_loop()
        except KeyboardInterrupt:
            LOG.info("Shutdown requested")
        finally:
            self.stop()

    def stop(self) -> None:
        self.running.clear()
        self.sock.close()

    # ---------------------------------------------------------------- internals
    def _recv_loop(self) -> None:
        """Listener thread – immediately enqueue received datagrams."""
        while self.running.is_set():
            try:
                data, peer = self.sock.recvfrom(self.buf_size)
            except OSError:                    # Socket closed by stop()
                break
            self.recv_q.put((data, peer))

    def _process_loop(self) -> None:
        while self.running.is_set():
            try:
                data, peer = self.recv_q.get(timeout=0.5)
            except queue.Empty:
                continue                       # Allow shutdown check
            self.handle_datagram(data, peer)

    def handle_datagram(self, data: bytes, peer: Tuple[str, int]) -> None:
        """Decode one datagram and print it (or the reason it is malformed)."""
        LOG.debug("%d bytes from %s", len(data), format_address(peer[0], peer[1]))
        self._emit(format_datagram(data, peer[0], peer[1]))

    def _emit(self, lines: List[str]) -> None:
        self.out.write("\n".join(lines) + "\n")
        self.out.flush()
