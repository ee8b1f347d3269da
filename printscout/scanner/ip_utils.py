"""IPv4 helpers for /24 subnet discovery."""

from __future__ import annotations

import ipaddress


def to_ip_address(value: str) -> ipaddress.IPv4Address | None:
    """Convert a host value to an ``IPv4Address`` when possible."""
    if not value:
        return None

    host = value.strip().lower()
    if host == "localhost":
        return ipaddress.IPv4Address("127.0.0.1")

    try:
        return ipaddress.IPv4Address(host)
    except ValueError:
        return None


def normalize_subnet_prefix(value: str | None) -> str | None:
    """Return the ``a.b.c`` prefix for a prefix or a full dotted address.

    ``"192.168.1"`` and ``"192.168.1.50"`` both give ``"192.168.1"``; anything
    that is not three or four valid octets gives ``None``.
    """
    if not value:
        return None

    parts = value.strip().rstrip(".").split(".")
    if len(parts) == 4:
        if to_ip_address(".".join(parts)) is None:
            return None
        parts = parts[:3]
    if len(parts) != 3:
        return None

    for part in parts:
        if not part.isdigit() or int(part) > 255:
            return None
    return ".".join(str(int(part)) for part in parts)


def subnet_hosts(prefix: str) -> list[str]:
    """Every address ``prefix.0`` .. ``prefix.255``."""
    return [f"{prefix}.{index}" for index in range(256)]


def is_usable_source(value: str | None) -> bool:
    """Return ``True`` for an address a /24 sweep can start from."""
    ip_obj = to_ip_address(value or "")
    return bool(ip_obj and not ip_obj.is_unspecified and not ip_obj.is_link_local and not ip_obj.is_multicast)
