"""Local network address lookup used to pick the subnet to sweep."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Callable

import psutil

log = logging.getLogger(__name__)

AddressResolver = Callable[[], str | None]


def resolve_local_address() -> str | None:
    """Return the first non-loopback, non-link-local IPv4 address of this host."""
    try:
        interfaces = psutil.net_if_addrs()
    except OSError as exc:
        log.debug(f"Interface enumeration failed: {exc}")
        return None

    for interface_addrs in interfaces.values():
        for addr in interface_addrs:
            if getattr(addr, "family", None) != socket.AF_INET:
                continue
            if not addr.address:
                continue
            try:
                ip = ipaddress.ip_address(addr.address)
            except ValueError:
                continue
            if ip.is_loopback or ip.is_link_local:
                continue
            return str(ip)
    return None


def static_resolver(address: str | None) -> AddressResolver:
    """Build a resolver that always answers ``address``."""

    def _resolve() -> str | None:
        return address

    return _resolve
