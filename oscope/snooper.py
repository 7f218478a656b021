#!/usr/bin/env python3
"""``oscope snoop``: relay datagrams between two programs and print them.

Clients send to the snooper's port; each client gets its own forwarding
socket connected to the target, so replies from the target can be routed
back to the right client.  Datagrams are forwarded verbatim and decoded
only for display.

Threads: one receiver per socket feeds a shared queue; the processing loop
is the only code that reads or writes ``self.remotes``.
"""

from __future__ import annotations

import errno
import queue
import socket
import sys
import threading
from typing import Dict, List, Optional, TextIO, Tuple

from .address import Endpoint, format_address
from .errors import describe_socket_error
from .protocol import BUF_SIZE
from .render import banner, error, format_datagram
from .util import LOG

Peer = Tuple[str, int]

# Queue items: (datagram or None on ICMP refusal, sender, client the
# forwarding socket belongs to, or None for datagrams from clients)
_Item = Tuple[Optional[bytes], Peer, Optional[Peer]]


class OSCSnooper:
    """Bidirectional relay between clients and one target endpoint."""

    def __init__(
        self, listen: Endpoint, target: Endpoint,
        buf_size: int = BUF_SIZE, out: Optional[TextIO] = None,
    ) -> None:
        self.target = target
        self.target_address: Peer = target.connect_address
        self.buf_size = buf_size
        self.out = out or sys.stdout

        self.sock = socket.socket(listen.family, socket.SOCK_DGRAM)
        try:
            self.sock.bind(listen.bind_address)
        except OSError:
            self.sock.close()
            raise

        # client (host, port) ➜ socket connected to the target
        self.remotes: Dict[Peer, socket.socket] = {}
        self.recv_q: "queue.Queue[_Item]" = queue.Queue()

        self.running = threading.Event()
        self.running.set()

    @property
    def address(self) -> Peer:
        return self.sock.getsockname()[:2]

    # ================================================================= main ===
    def start(self) -> None:
        host, port = self.address
        self._emit([banner(
            f"Snooping between {format_address(host, port)} and {format_address(*self.target_address)}"
        )])
        LOG.info("Relaying %s <-> %s", format_address(host, port), format_address(*self.target_address))

        threading.Thread(target=self._recv_loop, args=(self.sock, None), daemon=True).start()
        try:
            self._process_loop()
        except KeyboardInterrupt:
            LOG.info("Shutdown requested")
        finally:
            self.close()

    def stop(self) -> None:
        self.running.clear()
        self.sock.close()

    def close(self) -> None:
        """Stop and release every forwarding socket (call once the loop is done)."""
        self.stop()
        for remote in list(self.remotes.values()):
            remote.close()
        self.remotes.clear()

    # ---------------------------------------------------------------- internals
    def _recv_loop(self, sock: socket.socket, client: Optional[Peer]) -> None:
        """Enqueue everything *sock* receives, tagged with its owning client."""
        while self.running.is_set():
            try:
                data, peer = sock.recvfrom(self.buf_size)
            except ConnectionRefusedError:
                if client is not None:         # Forwarding sockets only
                    self.recv_q.put((None, self.target_address, client))
                continue
            except OSError:
                break
            self.recv_q.put((data, (peer[0], peer[1]), client))

    def _process_loop(self) -> None:
        while self.running.is_set():
            try:
                item = self.recv_q.get(timeout=0.5)
            except queue.Empty:
                continue
            self.handle(*item)

    def handle(self, data: Optional[bytes], peer: Peer, client: Optional[Peer]) -> None:
        """Route one queued item: client ➜ target, or target ➜ client."""
        if data is None:
            self._emit([error(describe_socket_error(
                ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"), self.target_address,
            ))])
            return
        if client is None:
            self._from_client(data, peer)
        else:
            self._from_target(data, client)

    def _from_client(self, data: bytes, client: Peer) -> None:
        remote = self.remotes.get(client)
        if remote is None:
            remote = socket.socket(self.target.family, socket.SOCK_DGRAM)
            try:
                remote.connect(self.target_address)
            except OSError as exc:
                remote.close()
                LOG.error("Cannot reach %s: %s", format_address(*self.target_address), exc)
                self._emit([error(describe_socket_error(exc, self.target_address))])
                return
            self.remotes[client] = remote
            threading.Thread(target=self._recv_loop, args=(remote, client), daemon=True).start()
            LOG.info("New client %s relayed through local port %d",
                     format_address(*client), remote.getsockname()[1])

        try:
            remote.send(data)
        except OSError as exc:
            LOG.error("Forward to %s failed: %s", format_address(*self.target_address), exc)
            self._emit([error(describe_socket_error(exc, self.target_address))])
        self._emit(format_datagram(data, client[0], client[1]))

    def _from_target(self, data: bytes, client: Peer) -> None:
        try:
            self.sock.sendto(data, client)
        except OSError as exc:
            LOG.error("Reply to %s failed: %s", format_address(*client), exc)
            self._emit([error(describe_socket_error(exc, client))])
        self._emit(format_datagram(
            data, self.target_address[0], self.target_address[1],
            note=f"reply to {format_address(*client)},",
        ))

    def _emit(self, lines: List[str]) -> None:
        self.out.write("\n".join(lines) + "\n")
        self.out.flush()
