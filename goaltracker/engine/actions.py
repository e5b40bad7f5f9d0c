"""State operations — pure ``AppState -> AppState`` functions.

Every operation returns a new document and never mutates its input; the
coordinator swaps the result in as a whole.
"""

from __future__ import annotations

from datetime import date

from goaltracker.engine.errors import PositionError, StateError
from goaltracker.engine.models import (
    ALL_CATEGORIES,
    AppState,
    ChartType,
    DailyEntry,
    Goal,
    GoalCategory,
    NotificationSettings,
    ThemeMode,
    Widget,
    WidgetKind,
)
from goaltracker.engine.metrics import all_task_keys
from goaltracker.engine.seed import new_id


def _index_of(items: list, item_id: str, what: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    raise StateError(f"Unknown {what}: {item_id}")


def _moved(items: list, old_index: int, new_index: int) -> list:
    if not 0 <= new_index < len(items):
        raise PositionError(f"Position out of range: {new_index}")
    out = list(items)
    out.insert(new_index, out.pop(old_index))
    return out


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


def set_theme(state: AppState, theme: ThemeMode) -> AppState:
    return state.model_copy(update={"theme": ThemeMode(theme)})


def set_category_filter(state: AppState, category: GoalCategory | str) -> AppState:
    value = category if category == ALL_CATEGORIES else GoalCategory(category)
    return state.model_copy(update={"admin_category_filter": value})


def filter_goals(goals: list[Goal], category: GoalCategory | str) -> list[Goal]:
    if category == ALL_CATEGORIES:
        return list(goals)
    return [g for g in goals if g.category == category]


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def upsert_goal(state: AppState, goal: Goal) -> AppState:
    """Replace an existing goal in place, or prepend a new one."""
    if any(g.id == goal.id for g in state.goals):
        goals = [goal if g.id == goal.id else g for g in state.goals]
    else:
        goals = [goal, *state.goals]

    per_goal = dict(state.notification.per_goal_enabled)
    per_goal.setdefault(goal.id, True)
    notification = state.notification.model_copy(update={"per_goal_enabled": per_goal})
    return state.model_copy(update={"goals": goals, "notification": notification})


def remove_goal(state: AppState, goal_id: str) -> AppState:
    """Drop a goal together with its subtasks and notification toggle.

    Checks recorded against the goal stay in history; they simply stop
    resolving to a subtask.
    """
    _index_of(state.goals, goal_id, "goal")
    goals = [g for g in state.goals if g.id != goal_id]
    per_goal = {k: v for k, v in state.notification.per_goal_enabled.items() if k != goal_id}
    notification = state.notification.model_copy(update={"per_goal_enabled": per_goal})
    return state.model_copy(update={"goals": goals, "notification": notification})


def move_goal(state: AppState, goal_id: str, new_index: int) -> AppState:
    old_index = _index_of(state.goals, goal_id, "goal")
    return state.model_copy(update={"goals": _moved(state.goals, old_index, new_index)})


# ---------------------------------------------------------------------------
# Daily entries
# ---------------------------------------------------------------------------


def get_entry(state: AppState, day: date) -> DailyEntry | None:
    iso = day.isoformat()
    return next((e for e in state.entries if e.date_iso == iso), None)


def _commit_entry(state: AppState, entry: DailyEntry) -> AppState:
    """Replace the entry for its date, or insert it keeping dates sorted and unique."""
    if any(e.date_iso == entry.date_iso for e in state.entries):
        entries = [entry if e.date_iso == entry.date_iso else e for e in state.entries]
    else:
        entries = sorted([*state.entries, entry], key=lambda e: e.date_iso)
    return state.model_copy(update={"entries": entries})


def set_check(state: AppState, day: date, key: str, done: bool) -> AppState:
    if key not in all_task_keys(state.goals):
        raise StateError(f"Unknown subtask: {key}")
    entry = get_entry(state, day) or DailyEntry(date_iso=day.isoformat())
    checks = {**entry.checks, key: done}
    return _commit_entry(state, entry.model_copy(update={"checks": checks}))


def set_notes(state: AppState, day: date, notes: str) -> AppState:
    entry = get_entry(state, day) or DailyEntry(date_iso=day.isoformat())
    return _commit_entry(state, entry.model_copy(update={"notes": notes}))


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------


def add_widget(state: AppState, kind: WidgetKind) -> AppState:
    kind = WidgetKind(kind)
    widget = Widget(
        id=new_id("w"),
        kind=kind,
        chart_type=ChartType.line if kind == WidgetKind.chart else None,
    )
    return state.model_copy(update={"widgets": [*state.widgets, widget]})


def remove_widget(state: AppState, widget_id: str) -> AppState:
    _index_of(state.widgets, widget_id, "widget")
    return state.model_copy(update={"widgets": [w for w in state.widgets if w.id != widget_id]})


def toggle_chart_type(state: AppState, widget_id: str) -> AppState:
    """Flip line <-> bar. A widget without a chart type becomes a line chart."""
    _index_of(state.widgets, widget_id, "widget")
    widgets = [
        w.model_copy(
            update={"chart_type": ChartType.bar if w.chart_type == ChartType.line else ChartType.line}
        )
        if w.id == widget_id
        else w
        for w in state.widgets
    ]
    return state.model_copy(update={"widgets": widgets})


def move_widget(state: AppState, widget_id: str, new_index: int) -> AppState:
    old_index = _index_of(state.widgets, widget_id, "widget")
    return state.model_copy(update={"widgets": _moved(state.widgets, old_index, new_index)})


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def set_notification_settings(state: AppState, notification: NotificationSettings) -> AppState:
    """Replace notification settings wholesale; the normalizer repairs per-goal keys."""
    return state.model_copy(update={"notification": notification})


def set_goal_notification(state: AppState, goal_id: str, enabled: bool) -> AppState:
    _index_of(state.goals, goal_id, "goal")
    per_goal = {**state.notification.per_goal_enabled, goal_id: enabled}
    notification = state.notification.model_copy(update={"per_goal_enabled": per_goal})
    return state.model_copy(update={"notification": notification})
