"""Self-healing pass: keeps notification.per_goal_enabled in step with goals."""

from __future__ import annotations

from goaltracker.engine.models import AppState


def normalize(state: AppState) -> tuple[AppState, bool]:
    """Re-establish ``per_goal_enabled.keys() == {goal ids}``.

    Missing goals get a default-enabled entry, orphan keys are dropped.
    Returns ``(state, changed)``; when nothing needed repair the very same
    object comes back with ``changed=False``.
    """
    current = state.notification.per_goal_enabled
    goal_ids = [g.id for g in state.goals]

    known = set(goal_ids)
    repaired = {k: v for k, v in current.items() if k in known}
    for gid in goal_ids:
        repaired.setdefault(gid, True)

    if repaired == current:
        return state, False

    notification = state.notification.model_copy(update={"per_goal_enabled": repaired})
    return state.model_copy(update={"notification": notification}), True
