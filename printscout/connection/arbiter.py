"""Decide whether a submitted payload finished printing."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable

from .broadcast import Broadcast
from .models import STATUS_QUERY, PrinterState

log = logging.getLogger(__name__)

DEFAULT_COMPLETION_TIMEOUT = 10.0

_FAILED_STATES = frozenset({PrinterState.NONE, PrinterState.ERROR})


class PrintCompletionArbiter:
    """Write a payload plus a status query and wait for the verdict.

    The verdict is ``True`` when the printer-state channel reports
    ``finished``; ``False`` on ``none``/``error`` or when ``timeout`` runs out.
    The channel subscription is opened before the first write and released
    before :meth:`submit` returns, whichever way it resolves. Calls are
    serialized.
    """

    def __init__(
        self,
        write: Callable[[bytes], None],
        states: Broadcast[PrinterState],
        on_write_failure: Callable[[Exception], None],
        *,
        timeout: float = DEFAULT_COMPLETION_TIMEOUT,
    ) -> None:
        self._write = write
        self._states = states
        self._on_write_failure = on_write_failure
        self.timeout = timeout
        self._lock = threading.Lock()

    def submit(self, payload: bytes, is_ready: Callable[[], bool]) -> bool:
        with self._lock:
            if not is_ready():
                return False

            subscription = self._states.listen()
            try:
                try:
                    self._write(bytes(payload))
                    self._states.publish(PrinterState.PRINTING)
                    self._write(STATUS_QUERY)
                except Exception as exc:  # noqa: BLE001
                    log.warning(f"Print write failed: {exc}")
                    self._on_write_failure(exc)
                    return False
                return self._await_verdict(subscription)
            finally:
                subscription.cancel()

    def _await_verdict(self, subscription) -> bool:
        deadline = time.monotonic() + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                state = subscription.get(timeout=remaining)
            except queue.Empty:
                break
            if state is PrinterState.FINISHED:
                return True
            if state in _FAILED_STATES:
                return False
        log.info(f"No completion status from printer within {self.timeout}s")
        return False
