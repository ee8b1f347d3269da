"""Connector tunables with ``PRINTSCOUT_*`` environment overrides."""

from __future__ import annotations

from dataclasses import dataclass, fields
import logging
import os
from typing import Mapping

log = logging.getLogger(__name__)

ENV_PREFIX = "PRINTSCOUT_"


@dataclass(frozen=True, slots=True)
class ConnectorSettings:
    """Timing and sizing knobs shared by the connection manager and scanner.

    Durations are in seconds. ``scan_workers`` is a floor: a sweep always
    runs one probe thread per host of the /24, so it finishes in about one
    ``scan_timeout`` whatever the setting.
    """

    port: int = 9100
    connect_timeout: float = 5.0
    ping_interval: float = 3.0
    ping_timeout: float = 7.0
    completion_timeout: float = 10.0
    scan_timeout: float = 4.0
    scan_workers: int = 256
    read_size: int = 1024

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ConnectorSettings":
        """Build settings from ``PRINTSCOUT_<FIELD>`` variables.

        Values that do not parse, or are not positive, keep their default.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, int | float] = {}
        for field in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{field.name.upper()}")
            if raw is None or not raw.strip():
                continue
            caster = int if field.type in ("int", int) else float
            try:
                value = caster(raw.strip())
            except ValueError:
                log.warning(f"Ignoring invalid {ENV_PREFIX}{field.name.upper()}={raw!r}")
                continue
            if value <= 0:
                log.warning(f"Ignoring non-positive {ENV_PREFIX}{field.name.upper()}={raw!r}")
                continue
            overrides[field.name] = value
        return cls(**overrides)
