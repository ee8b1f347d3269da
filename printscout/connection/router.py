"""Reader thread that turns inbound printer bytes into printer-state events."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .broadcast import Broadcast
from .models import PrinterState, classify_status_byte

log = logging.getLogger(__name__)

# Called once with the terminal state when the peer closes or the read fails.
LossHandler = Callable[[PrinterState], None]


class SocketEventRouter:
    """Sole reader of one printer socket, bound to that socket's lifetime.

    Each inbound chunk is classified by its first byte. End of stream and read
    errors are reported through ``on_loss``; a router stopped with
    :meth:`stop` exits without reporting anything.
    """

    def __init__(
        self,
        sock: socket.socket,
        states: Broadcast[PrinterState],
        on_loss: LossHandler,
        *,
        read_size: int = 1024,
    ) -> None:
        self.sock = sock
        self._states = states
        self._on_loss = on_loss
        self._read_size = read_size
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._serve, daemon=True, name="printscout-router")
        self._thread.start()

    def stop(self) -> None:
        """Silence the router; the owner closes the socket afterwards."""
        self._stop_event.set()

    def join(self, timeout: float = 1.0) -> None:
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout)

    def _serve(self) -> None:
        while not self._stop_event.is_set():
            try:
                chunk = self.sock.recv(self._read_size)
            except OSError as exc:
                if self._stop_event.is_set():
                    return
                log.info(f"Printer socket error: {exc}")
                self._finish(PrinterState.ERROR)
                return

            if self._stop_event.is_set():
                return
            if not chunk:
                log.info("Printer socket closed by peer")
                self._finish(PrinterState.STOPPED)
                return

            log.debug(f"Printer status message {chunk!r}")
            self._states.publish(classify_status_byte(chunk[0]))

    def _finish(self, state: PrinterState) -> None:
        self._stop_event.set()
        self._on_loss(state)
