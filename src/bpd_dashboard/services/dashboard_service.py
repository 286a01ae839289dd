"""Dashboard view logic.

Pure functions over the state snapshot used by the dashboard, task list,
kanban board and connectivity indicator.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from bpd_dashboard.models import AppState, Task, TaskStatus

STATUS_LABELS = {
    TaskStatus.OPEN: "Open",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.ON_HOLD: "On Hold",
}

KANBAN_TITLES = {
    TaskStatus.OPEN: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.ON_HOLD: "On Hold",
}


class KanbanColumn(NamedTuple):
    status: TaskStatus
    title: str
    tasks: list[Task]


def status_breakdown(tasks: Sequence[Task]) -> dict[str, int]:
    """Task counts per status label, in workflow order."""
    return {
        label: sum(1 for t in tasks if t.status == status)
        for status, label in STATUS_LABELS.items()
    }


def program_breakdown(state: AppState) -> dict[str, int]:
    """Task counts per program, matched by program name."""
    return {
        program.name: sum(1 for t in state.tasks if t.program == program.name)
        for program in state.programs
    }


def completion_rate(tasks: Sequence[Task]) -> int:
    """Percentage of completed tasks, rounded; 0 when there are none."""
    if not tasks:
        return 0
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return round(completed / len(tasks) * 100)


def open_task_count(tasks: Sequence[Task]) -> int:
    return sum(1 for t in tasks if t.status != TaskStatus.COMPLETED)


def filter_tasks(tasks: Sequence[Task], search: str = "", program: str = "All") -> list[Task]:
    """Filter tasks by a case-insensitive name/assignee search and a program.

    Args:
        tasks: Tasks to filter
        search: Substring matched against task name or assignee
        program: Program name, or "All" for no program filter
    """
    needle = search.lower()
    return [
        t
        for t in tasks
        if (needle in t.name.lower() or needle in t.assigned_to.lower())
        and (program == "All" or t.program == program)
    ]


def kanban_columns(tasks: Sequence[Task]) -> list[KanbanColumn]:
    """Group tasks into the board's status columns."""
    return [
        KanbanColumn(status, title, [t for t in tasks if t.status == status])
        for status, title in KANBAN_TITLES.items()
    ]


def connectivity_label(connected: bool, has_credentials: bool) -> str:
    """Label for the connectivity indicator."""
    if not has_credentials:
        return "MISSING API KEYS"
    if connected:
        return "CLOUD SYNC ACTIVE"
    return "LOCAL CACHE MODE"
