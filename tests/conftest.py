"""Pytest configuration and shared fixtures."""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient

# Set testing mode BEFORE importing the app so the engine uses NullPool
os.environ["TESTING"] = "true"

from doseguard.core.dosing.exceptions import ProfileNotFoundError
from doseguard.core.dosing.models import InsulinEntry, UserDosingProfile
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import EntryStore, ProfileStore
from doseguard.main import app

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC)


class InMemoryEntryStore(EntryStore):
    """List-backed entry store for tests."""

    def __init__(self, entries: list[InsulinEntry] | None = None) -> None:
        self.entries: list[InsulinEntry] = list(entries or [])
        self.since_calls: list[datetime] = []

    async def list_insulin_entries(self, since: datetime) -> list[InsulinEntry]:
        self.since_calls.append(since)
        return [entry for entry in self.entries if entry.timestamp >= since]

    async def append_insulin_entry(self, entry: InsulinEntry) -> uuid.UUID:
        entry_id = uuid.uuid4()
        self.entries.append(entry.model_copy(update={"id": entry_id}))
        return entry_id


class StaticProfileStore(ProfileStore):
    """Returns one fixed profile, or raises when none is configured."""

    def __init__(self, profile: UserDosingProfile | None) -> None:
        self.profile = profile

    async def get_dosing_profile(self, user_id: uuid.UUID) -> UserDosingProfile:
        if self.profile is None:
            raise ProfileNotFoundError(f"No dosing profile for user {user_id}")
        return self.profile


@pytest.fixture
def policy() -> PolicyConfig:
    return PolicyConfig()


@pytest.fixture
def profile(policy) -> UserDosingProfile:
    """icr=10, isf=30, target 70-140, max 15, 4h active insulin."""
    return policy.default_profile()


@pytest.fixture
def entry_store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def profile_store(profile) -> StaticProfileStore:
    return StaticProfileStore(profile)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
