"""Shared fixtures for the test suite."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from goaltracker.engine.cache import LocalCache
from goaltracker.engine.coordinator import SyncCoordinator
from goaltracker.engine.models import (
    AppState,
    DailyEntry,
    Goal,
    GoalCategory,
    NotificationSettings,
    Subtask,
    Weight,
)
from goaltracker.engine.sessions import SessionManager, get_session_manager
from goaltracker.main import app

DEBOUNCE = 0.05
TIMEOUT = 0.5


# ---------------------------------------------------------------------------
# Fake remote store (no real Postgres needed)
# ---------------------------------------------------------------------------

class FakeRemoteStore:
    """In-memory stand-in for SqlRemoteStore that records every call."""

    def __init__(self, documents: dict[str, AppState] | None = None):
        self.documents: dict[str, AppState] = dict(documents or {})
        self.fetch_calls: list[str] = []
        self.upserts: list[tuple[str, AppState, datetime]] = []
        self.fetch_error: Exception | None = None
        self.upsert_error: Exception | None = None
        self.delay = 0.0

    async def fetch(self, user_id: str) -> AppState | None:
        self.fetch_calls.append(user_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.documents.get(user_id)

    async def upsert(self, user_id: str, state: AppState, updated_at: datetime) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.upsert_error is not None:
            raise self.upsert_error
        self.upserts.append((user_id, state, updated_at))
        self.documents[user_id] = state


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_goal(
    goal_id: str = "g1",
    weights: tuple[str, ...] = ("normal",),
    category: GoalCategory = GoalCategory.work,
    title: str = "Goal",
) -> Goal:
    """Goal whose subtasks are named t1, t2, … with the given weights."""
    return Goal(
        id=goal_id,
        title=title,
        category=category,
        subtasks=[
            Subtask(id=f"t{i}", text=f"Task {i}", weight=Weight(w))
            for i, w in enumerate(weights, start=1)
        ],
    )


def make_entry(day: date, *keys: str, notes: str = "", unchecked: tuple[str, ...] = ()) -> DailyEntry:
    checks: dict[str, bool] = {k: True for k in keys}
    checks.update({k: False for k in unchecked})
    return DailyEntry(date_iso=day.isoformat(), checks=checks, notes=notes)


def make_state(goals: list[Goal] | None = None, **overrides: Any) -> AppState:
    goals = goals if goals is not None else [make_goal()]
    fields: dict[str, Any] = {
        "goals": goals,
        "notification": NotificationSettings(per_goal_enabled={g.id: True for g in goals}),
    }
    fields.update(overrides)
    return AppState(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def remote():
    return FakeRemoteStore()


@pytest.fixture()
def cache(tmp_path):
    return LocalCache(tmp_path / "cache")


@pytest.fixture()
def coordinator(remote, cache):
    return SyncCoordinator(remote, cache, debounce_seconds=DEBOUNCE, timeout_seconds=TIMEOUT)


@pytest.fixture()
def manager(remote, cache):
    """SessionManager wired to the fake remote and a temp cache."""
    return SessionManager(
        factory=lambda: SyncCoordinator(remote, cache, debounce_seconds=DEBOUNCE, timeout_seconds=TIMEOUT)
    )


@pytest.fixture()
def override_manager(manager):
    """Override the FastAPI dependency so no real DB or cache dir is touched."""
    app.dependency_overrides[get_session_manager] = lambda: manager
    yield manager
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_manager):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await override_manager.sign_out()
