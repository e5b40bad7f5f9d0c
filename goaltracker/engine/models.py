"""AppState document contract — Pydantic v2 models.

Serialized field names (camelCase) are the compatibility surface of the
persisted and replicated document; Python attributes stay snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

ALL_CATEGORIES = "Все"
KEY_SEPARATOR = "::"


class ThemeMode(str, Enum):
    dark = "dark"
    light = "light"


class GoalCategory(str, Enum):
    marketing = "Маркетинг"
    sales = "Продажи"
    product = "Продукт"
    work = "Работа"
    health = "Здоровье"
    sport = "Спорт"
    personal = "Личное"


class Weight(str, Enum):
    normal = "normal"
    hard = "hard"


class WidgetKind(str, Enum):
    heatmap = "heatmap"
    chart = "chart"
    streak = "streak"


class ChartType(str, Enum):
    line = "line"
    bar = "bar"


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class Subtask(CamelModel):
    id: str
    text: str
    weight: Weight = Weight.normal


class Goal(CamelModel):
    id: str
    title: str
    category: GoalCategory
    reminder_time: str | None = None  # "HH:MM"
    subtasks: list[Subtask] = Field(default_factory=list)


class DailyEntry(CamelModel):
    date_iso: str = Field(alias="dateISO")
    checks: dict[str, bool] = Field(default_factory=dict)  # "{goalId}::{subtaskId}" -> done
    notes: str = ""


class Widget(CamelModel):
    id: str
    kind: WidgetKind
    chart_type: ChartType | None = None


class NotificationSettings(CamelModel):
    enabled: bool = True
    quiet_hours_enabled: bool = True
    quiet_from: str = "22:00"
    quiet_to: str = "07:00"
    morning_brief_enabled: bool = True
    morning_time: str = "08:00"
    evening_report_enabled: bool = True
    evening_time: str = "21:00"
    goal_reminders_enabled: bool = True
    per_goal_enabled: dict[str, bool] = Field(default_factory=dict)


class AppState(CamelModel):
    """The single unit of persistence and replication for one user."""

    theme: ThemeMode = ThemeMode.dark
    goals: list[Goal] = Field(default_factory=list)
    entries: list[DailyEntry] = Field(default_factory=list)
    widgets: list[Widget] = Field(default_factory=list)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    admin_category_filter: GoalCategory | Literal["Все"] = ALL_CATEGORIES

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def task_key(goal_id: str, subtask_id: str) -> str:
    """Composite completion key used inside DailyEntry.checks."""
    return f"{goal_id}{KEY_SEPARATOR}{subtask_id}"


# ---------------------------------------------------------------------------
# Derived metrics (read-only views, never persisted)
# ---------------------------------------------------------------------------


class LevelInfo(BaseModel):
    level: int
    progress: int  # XP accumulated inside the current level
    next_need: int  # XP required to leave the current level


class CompletionPoint(BaseModel):
    date: str
    percent: int  # 0–100


class HeatmapCell(BaseModel):
    date: str
    share: float  # 0–1
    bucket: int  # 0–3


class DayProgress(BaseModel):
    date: str
    done: int = 0
    total: int = 0
    xp: int = 0


class MetricsSummary(BaseModel):
    total_xp: int
    level: LevelInfo
    streak: int
    today: DayProgress
    range: str
    series: list[CompletionPoint] = Field(default_factory=list)
    percent_now: int = 0


# ---------------------------------------------------------------------------
# Sync status signal
# ---------------------------------------------------------------------------


class SyncStatus(str, Enum):
    loading = "loading"
    ready = "ready"
    saving = "saving"
    error = "error"


class SyncState(BaseModel):
    status: SyncStatus
    error: str | None = None
    user_id: str | None = None
    initial_load_complete: bool = False
