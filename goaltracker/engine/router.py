"""Tracker HTTP router — session, state document, mutations, metrics."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Literal
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from goaltracker.auth import verify_api_key
from goaltracker.config import settings
from goaltracker.engine import actions, metrics
from goaltracker.engine.coordinator import SyncCoordinator
from goaltracker.engine.errors import PositionError, SessionError, StateError
from goaltracker.engine.models import (
    ALL_CATEGORIES,
    AppState,
    CamelModel,
    Goal,
    GoalCategory,
    HeatmapCell,
    MetricsSummary,
    NotificationSettings,
    Subtask,
    SyncState,
    ThemeMode,
    Weight,
    WidgetKind,
)
from goaltracker.engine.seed import new_id
from goaltracker.engine.sessions import SessionManager, get_session_manager

router = APIRouter(prefix="/tracker", tags=["tracker"], dependencies=[Depends(verify_api_key)])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class SessionIn(BaseModel):
    user_id: str = Field(min_length=1)


class ThemeIn(BaseModel):
    theme: ThemeMode


class FilterIn(BaseModel):
    category: GoalCategory | Literal["Все"]


class SubtaskIn(CamelModel):
    id: str | None = None
    text: str = Field(min_length=1)
    weight: Weight = Weight.normal


class GoalIn(CamelModel):
    """Goal as submitted by an editor; missing ids are assigned here."""

    id: str | None = None
    title: str
    category: GoalCategory
    reminder_time: str | None = None
    subtasks: list[SubtaskIn] = Field(default_factory=list)

    def to_goal(self) -> Goal:
        return Goal(
            id=self.id or new_id("g"),
            title=self.title.strip(),
            category=self.category,
            reminder_time=self.reminder_time or None,
            subtasks=[
                Subtask(id=t.id or new_id("t"), text=t.text.strip(), weight=t.weight)
                for t in self.subtasks
            ],
        )


class MoveIn(BaseModel):
    index: int = Field(ge=0)


class CheckIn(BaseModel):
    key: str
    done: bool


class NotesIn(BaseModel):
    notes: str


class WidgetIn(BaseModel):
    kind: WidgetKind


class ToggleIn(BaseModel):
    enabled: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date for '{name}': {value}")


def _today() -> date:
    return datetime.now(ZoneInfo(settings.default_tz)).date()


def get_coordinator(manager: SessionManager = Depends(get_session_manager)) -> SyncCoordinator:
    try:
        return manager.require()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


def _apply(coordinator: SyncCoordinator, mutate: Callable[[AppState], AppState]) -> dict:
    try:
        state = coordinator.update(mutate)
    except PositionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StateError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return state.to_document()


# ---------------------------------------------------------------------------
# /tracker/session, /tracker/status
# ---------------------------------------------------------------------------


@router.post("/session", response_model=SyncState)
async def sign_in(
    body: SessionIn,
    manager: SessionManager = Depends(get_session_manager),
) -> SyncState:
    coordinator = await manager.sign_in(body.user_id)
    return coordinator.sync_state


@router.delete("/session", status_code=204)
async def sign_out(manager: SessionManager = Depends(get_session_manager)) -> None:
    await manager.sign_out()


@router.get("/status", response_model=SyncState)
async def get_status(coordinator: SyncCoordinator = Depends(get_coordinator)) -> SyncState:
    return coordinator.sync_state


# ---------------------------------------------------------------------------
# /tracker/state and mutations
# ---------------------------------------------------------------------------


@router.get("/state")
async def get_state(coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return coordinator.state.to_document()


@router.put("/theme")
async def put_theme(body: ThemeIn, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return _apply(coordinator, lambda s: actions.set_theme(s, body.theme))


@router.put("/filter")
async def put_filter(body: FilterIn, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return _apply(coordinator, lambda s: actions.set_category_filter(s, body.category))


@router.get("/goals")
async def list_goals(
    coordinator: SyncCoordinator = Depends(get_coordinator),
    category: str | None = Query(default=None, description="Category (default: stored filter)"),
) -> list[dict]:
    state = coordinator.state
    chosen = category or state.admin_category_filter
    if chosen != ALL_CATEGORIES:
        try:
            chosen = GoalCategory(chosen)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Unknown category: {chosen}")
    goals = actions.filter_goals(state.goals, chosen)
    return [g.model_dump(mode="json", by_alias=True, exclude_none=True) for g in goals]


@router.put("/goals")
async def put_goal(body: GoalIn, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    if not body.title.strip():
        raise HTTPException(status_code=422, detail="Goal title must not be empty")
    goal = body.to_goal()
    return _apply(coordinator, lambda s: actions.upsert_goal(s, goal))


@router.delete("/goals/{goal_id}")
async def delete_goal(goal_id: str, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return _apply(coordinator, lambda s: actions.remove_goal(s, goal_id))


@router.post("/goals/{goal_id}/move")
async def move_goal(
    goal_id: str, body: MoveIn, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    return _apply(coordinator, lambda s: actions.move_goal(s, goal_id, body.index))


@router.put("/entries/{entry_date}/checks")
async def put_check(
    entry_date: str, body: CheckIn, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    day = _parse_date(entry_date, "date")
    return _apply(coordinator, lambda s: actions.set_check(s, day, body.key, body.done))


@router.put("/entries/{entry_date}/notes")
async def put_notes(
    entry_date: str, body: NotesIn, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    day = _parse_date(entry_date, "date")
    return _apply(coordinator, lambda s: actions.set_notes(s, day, body.notes))


@router.post("/widgets")
async def post_widget(body: WidgetIn, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return _apply(coordinator, lambda s: actions.add_widget(s, body.kind))


@router.delete("/widgets/{widget_id}")
async def delete_widget(widget_id: str, coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    return _apply(coordinator, lambda s: actions.remove_widget(s, widget_id))


@router.post("/widgets/{widget_id}/toggle-chart")
async def toggle_widget_chart(
    widget_id: str, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    return _apply(coordinator, lambda s: actions.toggle_chart_type(s, widget_id))


@router.post("/widgets/{widget_id}/move")
async def move_widget(
    widget_id: str, body: MoveIn, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    return _apply(coordinator, lambda s: actions.move_widget(s, widget_id, body.index))


@router.put("/notification")
async def put_notification(
    body: NotificationSettings, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    return _apply(coordinator, lambda s: actions.set_notification_settings(s, body))


@router.put("/notification/goals/{goal_id}")
async def put_goal_notification(
    goal_id: str, body: ToggleIn, coordinator: SyncCoordinator = Depends(get_coordinator)
) -> dict:
    return _apply(coordinator, lambda s: actions.set_goal_notification(s, goal_id, body.enabled))


@router.post("/reset")
async def reset_state(coordinator: SyncCoordinator = Depends(get_coordinator)) -> dict:
    try:
        state = await coordinator.reset()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return state.to_document()


# ---------------------------------------------------------------------------
# /tracker/metrics, /tracker/heatmap
# ---------------------------------------------------------------------------


@router.get("/metrics", response_model=MetricsSummary)
async def get_metrics(
    coordinator: SyncCoordinator = Depends(get_coordinator),
    range_name: Literal["week", "month", "year"] = Query(default="week", alias="range"),
    on: str | None = Query(default=None, description="Reference date (default: today)"),
) -> MetricsSummary:
    today = _parse_date(on, "on") if on else _today()
    state = coordinator.state
    return metrics.metrics_summary(state.goals, state.entries, range_name, today)


@router.get("/heatmap", response_model=list[HeatmapCell])
async def get_heatmap(
    coordinator: SyncCoordinator = Depends(get_coordinator),
    on: str | None = Query(default=None, description="Reference date (default: today)"),
) -> list[HeatmapCell]:
    today = _parse_date(on, "on") if on else _today()
    state = coordinator.state
    return metrics.heatmap(state.goals, state.entries, today)
