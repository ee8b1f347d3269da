"""Periodic ICMP echo probes against the connected printer."""

from __future__ import annotations

import logging
import platform
import subprocess
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

from printscout.scheduler.jobs import build_scheduler, log_schedule_event

from .broadcast import Broadcast
from .models import ProbeResult

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0
DEFAULT_TIMEOUT = 7.0

PingFunction = Callable[[str, float], ProbeResult]


def ping_host(address: str, timeout: float = DEFAULT_TIMEOUT) -> ProbeResult:
    """Send one echo request with the system ``ping`` binary.

    The reply wait is in milliseconds on Windows, macOS and FreeBSD, and in
    whole seconds on Linux.
    """
    system = platform.system().lower()
    if "windows" in system:
        cmd = ["ping", "-n", "1", "-w", str(int(timeout * 1000)), address]
    elif system in ("darwin", "freebsd"):
        cmd = ["ping", "-c", "1", "-W", str(max(1, int(timeout * 1000))), address]
    else:
        cmd = ["ping", "-c", "1", "-W", str(max(1, int(timeout))), address]

    started = time.monotonic()
    try:
        proc = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=timeout + 1)
    except subprocess.TimeoutExpired:
        return ProbeResult(address=address, error="timeout")
    except OSError as exc:
        return ProbeResult(address=address, error=f"ping unavailable: {exc}")

    if proc.returncode != 0:
        return ProbeResult(address=address, error=f"no reply (exit {proc.returncode})")
    return ProbeResult(address=address, latency=time.monotonic() - started)


class LivenessProber:
    """Ping ``address`` every ``interval`` seconds and publish each outcome.

    Runs until :meth:`stop`. Nothing is published once ``stop`` has been
    called, even by a probe that was already in flight.
    """

    def __init__(
        self,
        address: str,
        *,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        ping: PingFunction = ping_host,
    ) -> None:
        self.address = address
        self.interval = interval
        self.timeout = timeout
        self.results: Broadcast[ProbeResult] = Broadcast(f"liveness:{address}")
        self.job_id = f"liveness-{address}-{uuid.uuid4().hex[:8]}"
        self._ping = ping
        self._scheduler: BackgroundScheduler | None = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        # Held while a result is published; stop() waits on it.
        self._publish_lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._scheduler is not None:
                return
            self._stop_event.clear()
            scheduler = build_scheduler()
            scheduler.add_job(
                self._tick,
                "interval",
                seconds=self.interval,
                id=self.job_id,
                next_run_time=datetime.now(timezone.utc),
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            self._scheduler = scheduler
        log_schedule_event(action="started", job_id=self.job_id, target=self.address)
        log.debug(f"Liveness probe started for {self.address} every {self.interval}s")

    def stop(self) -> None:
        with self._lock:
            scheduler = self._scheduler
            if scheduler is None or self._stop_event.is_set():
                return
            self._stop_event.set()
        with self._publish_lock:
            pass
        if scheduler.running:
            scheduler.shutdown(wait=False)
        log_schedule_event(action="stopped", job_id=self.job_id, target=self.address)
        log.debug(f"Liveness probe stopped for {self.address}")

    def _tick(self) -> None:
        if self._stop_event.is_set():
            return
        try:
            result = self._ping(self.address, self.timeout)
        except Exception as exc:  # noqa: BLE001
            result = ProbeResult(address=self.address, error=str(exc) or type(exc).__name__)
        if not result.ok:
            log.debug(f"Liveness probe to {self.address} failed: {result.error}")
        with self._publish_lock:
            if self._stop_event.is_set():
                return
            self.results.publish(result)
