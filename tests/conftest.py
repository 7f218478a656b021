"""
Pytest configuration and fixtures for oscope tests.
"""

import re
import socket
import time

import pytest

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@pytest.fixture
def plain():
    """Return a function that strips ANSI colour codes from text."""
    return lambda text: _ANSI_RE.sub("", text)


@pytest.fixture
def wait_for():
    """Poll a predicate until it is true or a timeout expires."""
    def _wait(predicate, timeout=3.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()
    return _wait


@pytest.fixture
def udp_socket():
    """A UDP socket bound to an ephemeral loopback port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(3.0)
    yield sock
    sock.close()
