"""Scheduler helpers for periodic liveness probes."""

from .jobs import build_scheduler, get_schedule_events, log_schedule_event

__all__ = ["build_scheduler", "get_schedule_events", "log_schedule_event"]
