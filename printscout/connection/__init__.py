"""Connection package: socket lifecycle, liveness, routing and print verdicts."""

from .arbiter import PrintCompletionArbiter
from .broadcast import Broadcast, QueueSubscription, Subscription
from .liveness import LivenessProber, ping_host
from .manager import ConnectionManager, open_socket
from .models import (
    STATUS_QUERY,
    ConnectionParameters,
    ConnectionStatus,
    PrinterState,
    ProbeResult,
    classify_status_byte,
)
from .router import SocketEventRouter

__all__ = [
    "Broadcast",
    "ConnectionManager",
    "ConnectionParameters",
    "ConnectionStatus",
    "LivenessProber",
    "PrintCompletionArbiter",
    "PrinterState",
    "ProbeResult",
    "QueueSubscription",
    "STATUS_QUERY",
    "SocketEventRouter",
    "Subscription",
    "classify_status_byte",
    "open_socket",
    "ping_host",
]
