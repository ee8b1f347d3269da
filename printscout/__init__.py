"""printscout: discovery, connection health and print completion for raw-TCP printers."""

from printscout.config import ConnectorSettings
from printscout.connection import (
    Broadcast,
    ConnectionManager,
    ConnectionParameters,
    ConnectionStatus,
    PrinterState,
    ProbeResult,
)
from printscout.scanner import DiscoveredEndpoint, discover, discover_printers, resolve_local_address

__version__ = "0.1.0"

__all__ = [
    "Broadcast",
    "ConnectionManager",
    "ConnectionParameters",
    "ConnectionStatus",
    "ConnectorSettings",
    "DiscoveredEndpoint",
    "PrinterState",
    "ProbeResult",
    "discover",
    "discover_printers",
    "resolve_local_address",
]
