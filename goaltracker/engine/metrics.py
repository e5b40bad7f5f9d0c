"""Pure stateless metric functions — XP, levels, streaks, completion series.

Everything here is recomputed from the *current* goal/weight set; historical
checks whose subtask was deleted contribute nothing to completion and count
as normal weight toward XP.
"""

from __future__ import annotations

from datetime import date, timedelta

from goaltracker.engine.models import (
    CompletionPoint,
    DailyEntry,
    DayProgress,
    Goal,
    HeatmapCell,
    LevelInfo,
    MetricsSummary,
    Weight,
    task_key,
)

XP_BY_WEIGHT = {Weight.normal: 10, Weight.hard: 20}

FIRST_LEVEL_REQUIREMENT = 200
LEVEL_REQUIREMENT_STEP = 100

HEATMAP_DAYS = 70

RANGE_DAYS = {"week": 7, "month": 30, "year": 365}


def all_task_keys(goals: list[Goal]) -> list[str]:
    """Composite keys of every currently existing subtask, in display order."""
    return [task_key(g.id, t.id) for g in goals for t in g.subtasks]


def weights_by_key(goals: list[Goal]) -> dict[str, Weight]:
    return {task_key(g.id, t.id): t.weight for g in goals for t in g.subtasks}


def xp_for_weight(weight: Weight | None) -> int:
    """Unresolvable weights count as normal."""
    return XP_BY_WEIGHT.get(weight, XP_BY_WEIGHT[Weight.normal])


def compute_total_xp(goals: list[Goal], entries: list[DailyEntry]) -> int:
    weights = weights_by_key(goals)
    xp = 0
    for entry in entries:
        for key, done in entry.checks.items():
            if not done:
                continue
            xp += xp_for_weight(weights.get(key))
    return xp


def level_from_xp(xp: int) -> LevelInfo:
    """Level curve: 200 XP to reach level 2, then +100 per level (200, 300, 400…)."""
    level = 1
    need = FIRST_LEVEL_REQUIREMENT
    rest = max(xp, 0)
    while rest >= need:
        rest -= need
        level += 1
        need += LEVEL_REQUIREMENT_STEP
    return LevelInfo(level=level, progress=rest, next_need=need)


def has_any_check(entry: DailyEntry | None) -> bool:
    return entry is not None and any(entry.checks.values())


def compute_streak(entries: list[DailyEntry], today: date | None = None) -> int:
    """Consecutive qualifying days ending today. 0 if today has no true check."""
    by_date = {e.date_iso: e for e in entries}
    cursor = today or date.today()
    streak = 0
    while has_any_check(by_date.get(cursor.isoformat())):
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def range_days(name: str) -> int:
    """Days covered by a named stats range. Unknown names fall back to a week."""
    return RANGE_DAYS.get(name, RANGE_DAYS["week"])


def _day_share(keys: list[str], entry: DailyEntry | None) -> float:
    if not keys or entry is None:
        return 0.0
    done = sum(1 for k in keys if entry.checks.get(k))
    return done / len(keys)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def _window(days: int, today: date) -> list[date]:
    """The last `days` calendar days, oldest first, today inclusive."""
    return [today - timedelta(days=i) for i in range(days - 1, -1, -1)]


def completion_series(
    goals: list[Goal],
    entries: list[DailyEntry],
    days: int,
    today: date | None = None,
) -> list[CompletionPoint]:
    keys = all_task_keys(goals)
    by_date = {e.date_iso: e for e in entries}
    out: list[CompletionPoint] = []
    for day in _window(days, today or date.today()):
        iso = day.isoformat()
        share = _day_share(keys, by_date.get(iso))
        out.append(CompletionPoint(date=iso, percent=_round_half_up(share * 100)))
    return out


def heatmap_bucket(share: float) -> int:
    """Map a 0–1 completion share to one of four coloring buckets."""
    if share <= 0.0:
        return 0
    if share < 0.34:
        return 1
    if share < 0.67:
        return 2
    return 3


def heatmap(
    goals: list[Goal],
    entries: list[DailyEntry],
    today: date | None = None,
    days: int = HEATMAP_DAYS,
) -> list[HeatmapCell]:
    keys = all_task_keys(goals)
    by_date = {e.date_iso: e for e in entries}
    cells: list[HeatmapCell] = []
    for day in _window(days, today or date.today()):
        iso = day.isoformat()
        share = _day_share(keys, by_date.get(iso))
        cells.append(HeatmapCell(date=iso, share=share, bucket=heatmap_bucket(share)))
    return cells


def day_progress(goals: list[Goal], entry: DailyEntry | None, day: date) -> DayProgress:
    """Done/total subtasks and XP earned on a single day."""
    iso = day.isoformat()
    if entry is None:
        return DayProgress(date=iso, total=len(all_task_keys(goals)))
    done = 0
    xp = 0
    total = 0
    for g in goals:
        for t in g.subtasks:
            total += 1
            if entry.checks.get(task_key(g.id, t.id)):
                done += 1
                xp += xp_for_weight(t.weight)
    return DayProgress(date=iso, done=done, total=total, xp=xp)


def metrics_summary(
    goals: list[Goal],
    entries: list[DailyEntry],
    range_name: str = "week",
    today: date | None = None,
) -> MetricsSummary:
    today = today or date.today()
    total_xp = compute_total_xp(goals, entries)
    series = completion_series(goals, entries, range_days(range_name), today)
    entry = next((e for e in entries if e.date_iso == today.isoformat()), None)
    return MetricsSummary(
        total_xp=total_xp,
        level=level_from_xp(total_xp),
        streak=compute_streak(entries, today),
        today=day_progress(goals, entry, today),
        range=range_name if range_name in RANGE_DAYS else "week",
        series=series,
        percent_now=series[-1].percent if series else 0,
    )
