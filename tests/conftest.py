"""
Root pytest configuration and shared fixtures.

This conftest provides:
- The cluster harness plugin, and pytester for the plugin tests
- Fixtures built on the fakes in tests/shared/fakes.py
"""

import pytest

from cluster_harness.mock import MockControl
from tests.shared.fakes import FakeBucket, FakeClock, RecordingTransport

pytest_plugins = [
    "pytester",
    "cluster_harness.plugin",
]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_bucket():
    return FakeBucket()


@pytest.fixture
def mock_transport():
    return RecordingTransport()


@pytest.fixture
def mock_control(mock_transport):
    control = MockControl("http://mock.local:18091", transport=mock_transport)
    yield control
    control.close()
