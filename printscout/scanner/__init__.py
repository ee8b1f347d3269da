"""Scanner package: threaded subnet sweep for raw-TCP printers."""

from .engine import DiscoveredEndpoint, discover, discover_printers, iter_subnet
from .local_address import AddressResolver, resolve_local_address, static_resolver
from .tcp_scanner import ScanResult, probe_tcp_port

__all__ = [
    "AddressResolver",
    "DiscoveredEndpoint",
    "ScanResult",
    "discover",
    "discover_printers",
    "iter_subnet",
    "probe_tcp_port",
    "resolve_local_address",
    "static_resolver",
]
