"""Background scheduler setup and probe-job lifecycle records."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler

_JOB_EVENTS: list[dict[str, Any]] = []
_JOB_EVENTS_LOCK = Lock()
_MAX_JOB_EVENTS = 1000


def build_scheduler() -> BackgroundScheduler:
    """Create a daemonized background scheduler instance."""
    return BackgroundScheduler(daemon=True, timezone=timezone.utc)


def log_schedule_event(
    *,
    action: str,
    job_id: str,
    target: str = "",
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Record a probe-job lifecycle event (``started``, ``stopped``...)."""
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "job_id": job_id,
        "target": target,
        "metadata": dict(metadata or {}),
    }
    with _JOB_EVENTS_LOCK:
        _JOB_EVENTS.append(event)
        del _JOB_EVENTS[:-_MAX_JOB_EVENTS]
    return event


def get_schedule_events(*, job_id: str | None = None) -> list[dict[str, Any]]:
    """Return a snapshot of recorded scheduler events."""
    with _JOB_EVENTS_LOCK:
        items = list(_JOB_EVENTS)
    if job_id:
        return [event for event in items if str(event.get("job_id")) == job_id]
    return items
