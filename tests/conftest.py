"""Pytest configuration and shared fixtures.

Every test gets its own Platform built from explicit settings, so no state
leaks between tests through the process-wide instance.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from channelhub.config import Settings
from channelhub.domain import entities
from channelhub.domain.channels import Channel
from channelhub.domain.entities import Professor, Student
from channelhub.events.base import Event
from channelhub.events.stream import EventRecorder
from channelhub.platform import Platform


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="development",
        verify_invariants=True,
        seed_demo_data=False,
        recompute_on_startup=False,
    )


@pytest.fixture
def platform(settings: Settings) -> Platform:
    return Platform(settings=settings)


@pytest.fixture
def recorder(platform: Platform) -> EventRecorder:
    """Records every event published on the platform stream."""
    recorder = EventRecorder()
    platform.events.subscribe(Event, recorder)
    return recorder


@pytest_asyncio.fixture
async def professor(platform: Platform) -> Professor:
    return await platform.identity.create_user(
        {
            "role": "professor",
            "name": "Ahmed Djamel",
            "email": "ahmed@example.com",
            "university": "University of Algiers 1",
            "faculty": "Computer Science",
            "department": "Artificial Intelligence",
        },
        credential="secret",
    )


@pytest_asyncio.fixture
async def student(platform: Platform) -> Student:
    return await platform.identity.create_user(
        {
            "role": "student",
            "name": "Fatima Zahra",
            "email": "fatima@example.com",
            "university": "University of Algiers 2",
        },
        credential="secret",
    )


@pytest_asyncio.fixture
async def channel(platform: Platform, professor: Professor) -> Channel:
    return await platform.channels.create_channel(
        professor.id,
        {
            "name": "Introduction to Artificial Intelligence",
            "department": "Artificial Intelligence",
            "description": "Foundations of AI.",
        },
    )


@pytest.fixture
def make_student(platform: Platform):
    """Factory registering throwaway students with unique emails."""

    async def _make(index: int) -> Student:
        return await platform.identity.create_user(
            {"role": "student", "name": f"Student {index}", "email": f"student{index}@example.com"}
        )

    return _make


FROZEN_INSTANT = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


class _FrozenDatetime(datetime):
    @classmethod
    def now(cls, tz=None):
        return FROZEN_INSTANT


@pytest.fixture
def frozen_clock(monkeypatch) -> datetime:
    """Stamp every new record with the same instant."""
    monkeypatch.setattr(entities, "datetime", _FrozenDatetime)
    return FROZEN_INSTANT
