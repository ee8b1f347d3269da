"""Value types shared by the connection components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from printscout.scanner.tcp_scanner import parse_connection

DEFAULT_PORT = 9100
DEFAULT_CONNECT_TIMEOUT = 5.0

# DLE EOT 1: ask the printer to send back its status byte.
STATUS_QUERY = bytes([0x10, 0x04, 0x01])
BUSY_BIT = 0x08


class ConnectionStatus(str, Enum):
    NONE = "none"
    CONNECTED = "connected"


class PrinterState(str, Enum):
    NONE = "none"
    PRINTING = "printing"
    FINISHED = "finished"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ConnectionParameters:
    """Where and how long to try when opening the printer socket."""

    address: str
    port: int = DEFAULT_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    @classmethod
    def parse(cls, raw: str, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT) -> "ConnectionParameters":
        """Build parameters from ``host`` or ``host:port``."""
        host, port = parse_connection(raw, DEFAULT_PORT)
        return cls(address=host, port=port, connect_timeout=connect_timeout)


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of one liveness cycle; ``error`` is ``None`` on success."""

    address: str
    error: str | None = None
    latency: float | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def classify_status_byte(status: int) -> PrinterState:
    """Map a status byte to a printer state.

    Only the busy bit is read. Any other pattern counts as "not busy", which
    is taken to mean the job finished.
    """
    if status & BUSY_BIT == BUSY_BIT:
        return PrinterState.PRINTING
    return PrinterState.FINISHED
