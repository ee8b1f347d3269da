"""
printscout test suite — shared fixtures.

Usage:
    pip install -e ".[test]"
    pytest tests -v
"""

import pytest

from helpers import FakePrinter, ok_ping
from printscout.config import ConnectorSettings
from printscout.connection import ConnectionManager


@pytest.fixture
def printer():
    fake = FakePrinter().start()
    yield fake
    fake.stop()


@pytest.fixture
def fast_settings() -> ConnectorSettings:
    return ConnectorSettings(
        connect_timeout=1.0,
        ping_interval=0.05,
        ping_timeout=0.5,
        completion_timeout=1.0,
        scan_timeout=0.5,
    )


@pytest.fixture
def manager(fast_settings):
    mgr = ConnectionManager(fast_settings, ping=ok_ping)
    yield mgr
    mgr.disconnect()
