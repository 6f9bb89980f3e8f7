"""
Shared fixtures for grant store tests.
"""

import pytest
from datetime import datetime, timezone

from grantstore import PersistedGrantStore, RecordingObserver
from grantstore.backend.memory import MemoryBackend

from .helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend(clock):
    return MemoryBackend(clock=clock)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def store(backend, observer, clock):
    return PersistedGrantStore(backend, observer=observer, clock=clock)
