#!/usr/bin/env python3
"""Logging utils **and** helper that discovers our outward‑facing IP address."""

from __future__ import annotations
import logging                           # Python stdlib logging framework
import socket                            # Needed for IP detection
import sys                               # For stderr handle
from logging.handlers import RotatingFileHandler
from typing import Optional

__all__ = ["LOG", "configure_logging", "get_local_ip"]

# Global logger used throughout the package.  Handlers are attached by
# configure_logging(), which cli.main() calls once at startup.
LOG = logging.getLogger("oscope")

# Unified log line format.  Example: [23:59:59] INFO     Listening on 0.0.0.0:9000
_FORMAT = logging.Formatter("[%(asctime)s] %(levelname)-8s %(message)s", "%H:%M:%S")


def configure_logging(verbose: bool = False, log_file: Optional[str] = "oscope.log") -> logging.Logger:
    """Attach console + rotating file handlers to the "oscope" logger.

    The console handler goes to stderr (stdout carries rendered packets) and
    is only added when *verbose* is set.  An empty *log_file* disables the
    file handler.
    """
    logger = LOG
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):      # Idempotent across repeat calls
        logger.removeHandler(handler)
        handler.close()

    if verbose:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(_FORMAT)
        logger.addHandler(sh)

    if log_file:
        # Rotates once file hits ±1 MiB, keeps 3 backups ⇒ log ≲ 4 MiB on disk.
        fh = RotatingFileHandler(
            log_file,
            maxBytes=1_048_576,
            backupCount=3,
            encoding="utf-8",
        )
        fh.setFormatter(_FORMAT)
        logger.addHandler(fh)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


# ----------------------------------------------------------------------
# best‑effort outward IP discovery (no external calls, works offline)
# ----------------------------------------------------------------------

def get_local_ip() -> str:
    """Return the host's primary IP, fallback to 127.0.0.1 on failure."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)  # UDP socket ≠ connect
    try:
        # connect() with UDP doesn't send anything; it just makes the OS pick
        # the source address it would use for that destination.
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()
