"""Default document — the only place a "first run" state is materialized."""

from __future__ import annotations

import secrets
import time

from goaltracker.engine.models import (
    AppState,
    ChartType,
    Goal,
    GoalCategory,
    NotificationSettings,
    Subtask,
    ThemeMode,
    Weight,
    Widget,
    WidgetKind,
)


def new_id(prefix: str = "id") -> str:
    """Random, time-suffixed identifier: ``{prefix}_{random hex}_{ms hex}``."""
    return f"{prefix}_{secrets.token_hex(6)}_{int(time.time() * 1000):x}"


def default_goals() -> list[Goal]:
    return [
        Goal(
            id=new_id("g"),
            title="Запуск бренда Q3",
            category=GoalCategory.marketing,
            reminder_time="10:00",
            subtasks=[
                Subtask(id=new_id("t"), text="Согласование дизайна", weight=Weight.hard),
                Subtask(id=new_id("t"), text="Настройка рекламы", weight=Weight.normal),
            ],
        ),
        Goal(
            id=new_id("g"),
            title="10 новых клиентов",
            category=GoalCategory.sales,
            reminder_time="15:00",
            subtasks=[Subtask(id=new_id("t"), text="1 звонок", weight=Weight.hard)],
        ),
    ]


def default_widgets() -> list[Widget]:
    return [
        Widget(id=new_id("w"), kind=WidgetKind.heatmap),
        Widget(id=new_id("w"), kind=WidgetKind.chart, chart_type=ChartType.line),
        Widget(id=new_id("w"), kind=WidgetKind.streak),
    ]


def default_state() -> AppState:
    """Fresh seed: two sample goals, default notifications, three widgets."""
    goals = default_goals()
    return AppState(
        theme=ThemeMode.dark,
        goals=goals,
        entries=[],
        widgets=default_widgets(),
        notification=NotificationSettings(per_goal_enabled={g.id: True for g in goals}),
    )
