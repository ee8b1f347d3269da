"""
Shared test helpers: polling, probe stubs and a loopback fake printer.

FakePrinter stands in for a port-9100 printer. It records every byte it
receives and answers each DLE EOT 1 status query with a configurable status
byte, or not at all.
"""

from __future__ import annotations

import socket
import struct
import threading
import time

from printscout.connection import ProbeResult, STATUS_QUERY


def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def ok_ping(address: str, timeout: float) -> ProbeResult:
    return ProbeResult(address=address, latency=0.001)


def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class FakePrinter:
    """Threaded TCP listener that behaves like a raw printer port."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, status_byte: int | None = 0x00) -> None:
        self.status_byte = status_byte
        self.on_query = "answer"  # "answer" | "close" | "reset"
        self.received = bytearray()
        self.queries = 0
        self.connections = 0
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind((host, port))
        self._server.listen(8)
        self._server.settimeout(0.1)
        self.host, self.port = self._server.getsockname()[:2]
        self._clients: list[socket.socket] = []
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True, name="fake-printer")

    def start(self) -> "FakePrinter":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()
        self.close_clients()
        self._thread.join(1.0)
        self._server.close()

    @property
    def open_clients(self) -> int:
        with self._lock:
            return len(self._clients)

    def close_clients(self) -> None:
        with self._lock:
            clients, self._clients = self._clients, []
        for conn in clients:
            _close(conn)

    def reset_clients(self) -> None:
        with self._lock:
            clients, self._clients = self._clients, []
        for conn in clients:
            _reset(conn)

    def _serve(self) -> None:
        while not self._stop_event.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with self._lock:
                self.connections += 1
                self._clients.append(conn)
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        pending = bytearray()
        while not self._stop_event.is_set():
            try:
                chunk = conn.recv(4096)
            except OSError:
                break
            if not chunk:
                self._drop(conn, _close)
                return
            with self._lock:
                self.received.extend(chunk)
            pending.extend(chunk)
            while STATUS_QUERY in pending:
                index = pending.index(STATUS_QUERY)
                del pending[: index + len(STATUS_QUERY)]
                with self._lock:
                    self.queries += 1
                if self.on_query == "close":
                    self._drop(conn, _close)
                    return
                if self.on_query == "reset":
                    self._drop(conn, _reset)
                    return
                if self.status_byte is not None:
                    try:
                        conn.sendall(bytes([self.status_byte]))
                    except OSError:
                        return

    def _drop(self, conn: socket.socket, closer) -> None:
        with self._lock:
            if conn not in self._clients:
                # Already taken by close_clients/reset_clients, which close it.
                return
            self._clients.remove(conn)
        closer(conn)


def _close(conn: socket.socket) -> None:
    try:
        conn.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    conn.close()


def _reset(conn: socket.socket) -> None:
    # Zero linger turns close() into an RST. Shutting down the read side first
    # wakes a handler thread blocked in recv(), so the kernel socket is
    # actually released (and the RST sent) on close().
    conn.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
    try:
        conn.shutdown(socket.SHUT_RD)
    except OSError:
        pass
    conn.close()


