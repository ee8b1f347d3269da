"""TCP connect probing primitives."""

from __future__ import annotations

from dataclasses import dataclass
import socket


@dataclass(slots=True)
class ScanResult:
    """Single probe result produced by the scanner engine."""

    host: str
    port: int
    is_open: bool
    error: str | None = None


def probe_tcp_port(host: str, port: int, timeout: float) -> ScanResult:
    """Attempt a TCP connect and return open/closed state."""
    if port < 0 or port > 65535:
        return ScanResult(host=host, port=port, is_open=False, error="invalid-port")
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            code = sock.connect_ex((host, port))
        if code == 0:
            return ScanResult(host=host, port=port, is_open=True)
        return ScanResult(host=host, port=port, is_open=False, error=f"errno-{code}")
    except OSError as exc:
        return ScanResult(host=host, port=port, is_open=False, error=str(exc))


def parse_connection(raw: str, default_port: int = 9100) -> tuple[str, int]:
    """Parse a ``host:port`` descriptor; a bare host gets ``default_port``."""
    if ":" not in raw:
        return raw.strip(), default_port
    host, port = raw.rsplit(":", 1)
    return host.strip(), int(port)
