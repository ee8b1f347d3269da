"""Raw TCP printer connection: lifecycle, health and print completion."""

from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Callable, Iterator

from printscout.config import ConnectorSettings
from printscout.scanner.engine import DiscoveredEndpoint, discover_printers, iter_subnet
from printscout.scanner.local_address import AddressResolver, resolve_local_address

from .arbiter import PrintCompletionArbiter
from .broadcast import Broadcast
from .liveness import LivenessProber, PingFunction, ping_host
from .models import ConnectionParameters, ConnectionStatus, PrinterState, ProbeResult
from .router import SocketEventRouter

log = logging.getLogger(__name__)

SocketFactory = Callable[[tuple[str, int], float], socket.socket]


def open_socket(address: tuple[str, int], timeout: float) -> socket.socket:
    """Open a blocking stream socket, bounded by ``timeout`` for the handshake."""
    sock = socket.create_connection(address, timeout=timeout)
    sock.settimeout(None)
    return sock


class ConnectionManager:
    """Owns one stream socket to one printer.

    Status changes go out on :attr:`status_changes`; printer activity on
    :attr:`printer_states`. Neither channel replays past values. Public
    operations report failures as ``False`` and never raise for network
    faults.
    """

    def __init__(
        self,
        settings: ConnectorSettings | None = None,
        *,
        socket_factory: SocketFactory = open_socket,
        ping: PingFunction = ping_host,
        resolver: AddressResolver = resolve_local_address,
    ) -> None:
        self.settings = settings or ConnectorSettings()
        self.status_changes: Broadcast[ConnectionStatus] = Broadcast("connection-status")
        self.printer_states: Broadcast[PrinterState] = Broadcast("printer-state")
        self._socket_factory = socket_factory
        self._ping = ping
        self._resolver = resolver
        self._lock = threading.RLock()
        self._status = ConnectionStatus.NONE
        self._socket: socket.socket | None = None
        self._router: SocketEventRouter | None = None
        self._prober: LivenessProber | None = None
        self._arbiter = PrintCompletionArbiter(
            self._write,
            self.printer_states,
            self._on_write_failure,
            timeout=self.settings.completion_timeout,
        )

    # ---- State ----------------------------------------------------------- #
    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status is ConnectionStatus.CONNECTED

    @property
    def prober(self) -> LivenessProber | None:
        return self._prober

    def _set_status(self, status: ConnectionStatus) -> None:
        with self._lock:
            self._status = status
            self.status_changes.publish(status)

    # ---- Discovery ------------------------------------------------------- #
    def discovery(self, address: str | None = None, port: int | None = None) -> Iterator[DiscoveredEndpoint]:
        """Lazily scan the /24 around ``address`` or this host's address."""
        return iter_subnet(
            address,
            port or self.settings.port,
            self.settings.scan_timeout,
            resolver=self._resolver,
            max_workers=self.settings.scan_workers,
        )

    def discover_printers(self, address: str | None = None, port: int | None = None) -> list[DiscoveredEndpoint]:
        return discover_printers(
            address,
            port or self.settings.port,
            self.settings.scan_timeout,
            resolver=self._resolver,
            max_workers=self.settings.scan_workers,
        )

    # ---- Lifecycle ------------------------------------------------------- #
    def connect(self, params: ConnectionParameters | str) -> bool:
        """Open the printer socket; a no-op returning ``True`` when connected.

        A ``"host[:port]"`` string that does not parse fails like a refused
        connection: status ``NONE`` is published and ``False`` returned.
        """
        with self._lock:
            if self._status is ConnectionStatus.CONNECTED and self._socket is not None:
                return True

            target = params if isinstance(params, str) else f"{params.address}:{params.port}"
            sock: socket.socket | None = None
            try:
                if isinstance(params, str):
                    params = ConnectionParameters.parse(params, self.settings.connect_timeout)
                sock = self._socket_factory((params.address, params.port), params.connect_timeout)
                self._socket = sock
                self._set_status(ConnectionStatus.CONNECTED)
                log.info(f"Connected to printer {params.address}:{params.port}")

                router = SocketEventRouter(
                    sock,
                    self.printer_states,
                    lambda state, bound=sock: self._on_socket_lost(bound, state),
                    read_size=self.settings.read_size,
                )
                prober = LivenessProber(
                    params.address,
                    interval=self.settings.ping_interval,
                    timeout=self.settings.ping_timeout,
                    ping=self._ping,
                )
                prober.results.subscribe(lambda result, bound=sock: self._on_probe(bound, result))
                self._router = router
                self._prober = prober
                router.start()
                prober.start()
            except Exception as exc:  # noqa: BLE001
                log.info(f"Connection to {target} failed: {exc}")
                router, prober = self._router, self._prober
                self._socket = self._router = self._prober = None
                if router is not None:
                    router.stop()
                if prober is not None:
                    prober.stop()
                _destroy(sock)
                self._set_status(ConnectionStatus.NONE)
            return self._status is ConnectionStatus.CONNECTED

    def disconnect(self, delay_ms: int | None = None) -> bool:
        """Destroy the socket; waits ``delay_ms`` afterwards when given.

        Dropping a live socket publishes ``PrinterState.NONE`` on
        :attr:`printer_states` before status ``NONE``, so a ``send`` waiting
        for completion resolves ``False`` at once. Without a socket nothing is
        published and the call returns ``True``.
        """
        try:
            self._teardown(printer_state=PrinterState.NONE)
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Disconnect failed: {exc}")
            with self._lock:
                self._socket = self._router = self._prober = None
                self._set_status(ConnectionStatus.NONE)
            return False
        if delay_ms and delay_ms > 0:
            time.sleep(delay_ms / 1000)
        return True

    def send(self, payload: bytes | bytearray | list[int]) -> bool:
        """Print ``payload`` and report whether the printer signalled completion.

        A payload that is not a byte sequence (say a list holding ``0x140``)
        is rejected with ``False`` before anything is written.
        """
        try:
            data = bytes(payload)
        except (TypeError, ValueError) as exc:
            log.warning(f"Rejected print payload: {exc}")
            return False
        return self._arbiter.submit(data, lambda: self.is_connected)

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---- Internals ------------------------------------------------------- #
    def _write(self, data: bytes) -> None:
        sock = self._socket
        if sock is None:
            raise ConnectionError("printer socket is not open")
        sock.sendall(data)

    def _on_write_failure(self, exc: Exception) -> None:
        self._teardown(printer_state=PrinterState.NONE)

    def _on_socket_lost(self, sock: socket.socket, state: PrinterState) -> None:
        self._teardown(printer_state=state, expected=sock)

    def _on_probe(self, sock: socket.socket, result: ProbeResult) -> None:
        if result.ok:
            return
        log.info(f"Liveness probe to {result.address} failed ({result.error}); dropping connection")
        self._teardown(expected=sock)

    def _teardown(
        self,
        *,
        printer_state: PrinterState | None = None,
        expected: socket.socket | None = None,
    ) -> bool:
        """Drop the socket with its router and prober, then report ``none``.

        With ``expected`` set, only that socket is torn down; a stale signal
        about an older socket is ignored. ``printer_state`` is published only
        when a live connection was actually dropped.
        """
        with self._lock:
            sock = self._socket
            if sock is None or (expected is not None and sock is not expected):
                return False
            router, prober = self._router, self._prober
            self._socket = self._router = self._prober = None

        if router is not None:
            router.stop()
        if prober is not None:
            prober.stop()
        _destroy(sock)
        if router is not None:
            router.join()
        log.info("Printer connection torn down")

        if printer_state is not None:
            self.printer_states.publish(printer_state)
        with self._lock:
            if self._socket is None:
                self._set_status(ConnectionStatus.NONE)
        return True


def _destroy(sock: socket.socket | None) -> None:
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()
