"""Threaded /24 sweep that streams open printer endpoints as probes complete."""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
import logging
from typing import Callable, Iterator

from .ip_utils import is_usable_source, normalize_subnet_prefix, subnet_hosts
from .local_address import AddressResolver, resolve_local_address
from .tcp_scanner import ScanResult, probe_tcp_port

log = logging.getLogger(__name__)

DEFAULT_PORT = 9100
DEFAULT_SCAN_TIMEOUT = 4.0
DEFAULT_WORKERS = 256

Prober = Callable[[str, int, float], ScanResult]


@dataclass(frozen=True, slots=True)
class DiscoveredEndpoint:
    """A host that accepted a connection on the scanned port."""

    display_name: str
    address: str
    port: int

    @classmethod
    def from_result(cls, result: ScanResult) -> "DiscoveredEndpoint":
        return cls(display_name=f"{result.host}:{result.port}", address=result.host, port=result.port)


def discover(
    subnet_prefix: str,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    *,
    max_workers: int = DEFAULT_WORKERS,
    probe: Prober = probe_tcp_port,
) -> Iterator[DiscoveredEndpoint]:
    """Probe every address of ``subnet_prefix`` and yield the open ones.

    Endpoints come out in the order their probes finish. Closed, refused,
    unreachable or timed-out hosts are skipped silently, and an unusable prefix
    produces an empty sequence. Each call runs a fresh sweep.
    """
    prefix = normalize_subnet_prefix(subnet_prefix)
    if prefix is None:
        log.debug(f"Skipping scan of unusable subnet prefix {subnet_prefix!r}")
        return

    hosts = subnet_hosts(prefix)
    # One thread per host keeps the sweep within a single probe timeout.
    pool = ThreadPoolExecutor(max_workers=max(max_workers, len(hosts)), thread_name_prefix="scan-probe")
    try:
        pending: set[Future[ScanResult]] = {pool.submit(probe, host, int(port), timeout) for host in hosts}
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                try:
                    result = future.result()
                except Exception as exc:  # noqa: BLE001
                    log.debug(f"Probe raised during scan of {prefix}.0/24: {exc}")
                    continue
                if result.is_open:
                    yield DiscoveredEndpoint.from_result(result)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def discover_printers(
    address: str | None = None,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    *,
    resolver: AddressResolver = resolve_local_address,
    max_workers: int = DEFAULT_WORKERS,
    probe: Prober = probe_tcp_port,
) -> list[DiscoveredEndpoint]:
    """Scan the /24 around ``address`` (or this host) and collect the results."""
    return list(iter_subnet(address, port, timeout, resolver=resolver, max_workers=max_workers, probe=probe))


def iter_subnet(
    address: str | None = None,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    *,
    resolver: AddressResolver = resolve_local_address,
    max_workers: int = DEFAULT_WORKERS,
    probe: Prober = probe_tcp_port,
) -> Iterator[DiscoveredEndpoint]:
    """Lazy form of :func:`discover_printers`."""
    source = address if address is not None else resolver()
    if not is_usable_source(source):
        log.debug(f"No usable source address for discovery (got {source!r})")
        return iter(())

    prefix = source.rsplit(".", 1)[0]
    return discover(prefix, port, timeout, max_workers=max_workers, probe=probe)
