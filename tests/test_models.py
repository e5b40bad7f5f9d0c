"""Tests for the AppState document contract."""

from datetime import date

from goaltracker.engine.models import (
    ALL_CATEGORIES,
    AppState,
    DailyEntry,
    GoalCategory,
    ThemeMode,
    Widget,
    WidgetKind,
    task_key,
)
from goaltracker.engine.seed import default_state, new_id
from tests.conftest import make_entry, make_goal, make_state


class TestAppStateDefaults:
    def test_empty_document(self):
        state = AppState()
        assert state.theme == ThemeMode.dark
        assert state.goals == []
        assert state.entries == []
        assert state.admin_category_filter == ALL_CATEGORIES

    def test_notification_defaults(self):
        n = AppState().notification
        assert n.enabled is True
        assert (n.quiet_from, n.quiet_to) == ("22:00", "07:00")
        assert (n.morning_time, n.evening_time) == ("08:00", "21:00")
        assert n.per_goal_enabled == {}


class TestSerialization:
    def test_dump_uses_document_field_names(self):
        data = make_state(entries=[make_entry(date(2026, 3, 1), "g1::t1")]).to_document()
        assert set(data) == {"theme", "goals", "entries", "widgets", "notification", "adminCategoryFilter"}
        assert data["entries"][0]["dateISO"] == "2026-03-01"
        assert "perGoalEnabled" in data["notification"]
        assert "quietHoursEnabled" in data["notification"]
        assert "reminderTime" not in data["goals"][0]

    def test_optional_fields_written_only_when_set(self):
        goal = make_goal().model_copy(update={"reminder_time": "09:30"})
        state = make_state([goal], widgets=[
            Widget(id="w1", kind=WidgetKind.streak),
            Widget(id="w2", kind=WidgetKind.chart, chart_type="bar"),
        ])
        data = state.to_document()
        assert data["goals"][0]["reminderTime"] == "09:30"
        assert "chartType" not in data["widgets"][0]
        assert data["widgets"][1]["chartType"] == "bar"
        assert AppState.model_validate(data) == state

    def test_accepts_document_and_python_names(self):
        a = DailyEntry.model_validate({"dateISO": "2026-03-01", "checks": {"g::t": True}, "notes": "x"})
        b = DailyEntry(date_iso="2026-03-01", checks={"g::t": True}, notes="x")
        assert a == b

    def test_roundtrip_json(self):
        state = default_state()
        assert AppState.model_validate(state.to_document()) == state

    def test_category_filter_values(self):
        assert AppState.model_validate({"adminCategoryFilter": "Спорт"}).admin_category_filter == GoalCategory.sport
        assert AppState.model_validate({"adminCategoryFilter": "Все"}).admin_category_filter == ALL_CATEGORIES

    def test_chart_type_optional(self):
        w = Widget.model_validate({"id": "w1", "kind": "heatmap"})
        assert w.kind == WidgetKind.heatmap
        assert w.chart_type is None


class TestHelpers:
    def test_task_key(self):
        assert task_key("g_1", "t_2") == "g_1::t_2"

    def test_new_id_prefix_and_uniqueness(self):
        ids = {new_id("g") for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("g_") for i in ids)


class TestSeed:
    def test_two_goals_three_widgets(self):
        state = default_state()
        assert len(state.goals) == 2
        assert [w.kind for w in state.widgets] == [WidgetKind.heatmap, WidgetKind.chart, WidgetKind.streak]
        assert state.entries == []

    def test_per_goal_map_matches_goals(self):
        state = default_state()
        assert set(state.notification.per_goal_enabled) == {g.id for g in state.goals}
        assert all(state.notification.per_goal_enabled.values())

    def test_fresh_ids_each_time(self):
        assert default_state().goals[0].id != default_state().goals[0].id

    def test_builder_goal(self):
        assert [t.id for t in make_goal("g9", ("normal", "hard")).subtasks] == ["t1", "t2"]
