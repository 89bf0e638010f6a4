"""
Shared fixtures for the memory core tests.

Every timestamp is timezone-aware; the core rejects naive datetimes.
"""
from datetime import datetime, timedelta, timezone

import pytest

from hemisphere.adaptive.fsrs import CardState, FSRSScheduler, MemorySnapshot
from hemisphere.core.config import Settings


@pytest.fixture
def now():
    """Fixed review time for deterministic tests."""
    return datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def core_settings():
    """Settings built from defaults only."""
    return Settings(_env_file=None)


@pytest.fixture
def scheduler(core_settings):
    """Scheduler with platform default weights."""
    return FSRSScheduler(config=core_settings)


@pytest.fixture
def new_card():
    return MemorySnapshot.new()


@pytest.fixture
def review_card(now):
    """Card in review, last seen 10 days before `now`."""
    return MemorySnapshot(
        stability=10.0,
        difficulty=5.0,
        retrievability=0.9,
        state=CardState.REVIEW,
        last_review=now - timedelta(days=10),
        review_count=5,
        lapse_count=1,
    )


@pytest.fixture
def learning_card(now):
    """Card in learning, last seen one day before `now`."""
    return MemorySnapshot(
        stability=1.0,
        difficulty=7.2102,
        retrievability=1.0,
        state=CardState.LEARNING,
        last_review=now - timedelta(days=1),
        review_count=1,
    )
