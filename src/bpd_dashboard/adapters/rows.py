"""Mapping between domain models and remote store rows.

Store columns are the snake_case equivalents of the canonical entity fields
(``assigned_to`` for ``assignedTo``, ``planned_end_date`` for ``plannedEndDate``).
"""

from __future__ import annotations

from datetime import date
from typing import Any

from bpd_dashboard.models import (
    Program,
    ProgramUpdate,
    Task,
    TaskUpdate,
    User,
    UserUpdate,
)
from bpd_dashboard.repositories import Row

TASK_COLUMNS = (
    "id",
    "name",
    "description",
    "program",
    "assigned_to",
    "assigned_to_id",
    "priority",
    "status",
    "progress",
    "start_date",
    "planned_end_date",
    "actual_end_date",
    "updated_at",
    "updated_by",
)
PROGRAM_COLUMNS = ("id", "name", "description", "color", "created_at", "created_by")
USER_COLUMNS = ("id", "name", "email", "role", "department", "avatar")


def _text(row: Row, column: str, default: str = "") -> str:
    value = row.get(column)
    return default if value is None else str(value)


def task_from_row(row: Row) -> Task:
    """Build a Task from a store row.

    Notes and dependencies are not stored remotely and always come back empty.
    """
    progress = row.get("progress")
    return Task(
        id=str(row["id"]),
        name=_text(row, "name"),
        description=_text(row, "description"),
        program=_text(row, "program"),
        assigned_to=_text(row, "assigned_to"),
        assigned_to_id=_text(row, "assigned_to_id"),
        priority=row.get("priority") or "Medium",
        status=row.get("status") or "OPEN",
        progress=0 if progress is None else int(progress),
        start_date=row.get("start_date") or date.today().isoformat(),
        planned_end_date=_text(row, "planned_end_date"),
        actual_end_date=row.get("actual_end_date") or "",
        updated_at=_text(row, "updated_at"),
        updated_by=_text(row, "updated_by"),
        notes=[],
        dependent_tasks=[],
    )


def program_from_row(row: Row) -> Program:
    data = {k: row[k] for k in PROGRAM_COLUMNS if row.get(k) is not None}
    return Program(**data)


def user_from_row(row: Row) -> User:
    data = {k: row[k] for k in USER_COLUMNS if row.get(k) is not None}
    return User(**data)


def _dump(model: Any, columns: tuple[str, ...], *, partial: bool = False) -> Row:
    data = model.model_dump(mode="json", exclude_unset=partial)
    return {k: v for k, v in data.items() if k in columns}


def task_to_row(task: Task) -> Row:
    """Full row for inserting *task*."""
    return _dump(task, TASK_COLUMNS)


def task_update_to_row(update: TaskUpdate) -> Row:
    """Columns for a partial task update; unset fields are left out."""
    return _dump(update, TASK_COLUMNS, partial=True)


def program_to_row(program: Program) -> Row:
    return _dump(program, PROGRAM_COLUMNS)


def program_update_to_row(update: ProgramUpdate) -> Row:
    return _dump(update, PROGRAM_COLUMNS, partial=True)


def user_to_row(user: User) -> Row:
    row = _dump(user, USER_COLUMNS)
    if row.get("avatar") is None:
        row.pop("avatar", None)
    return row


def user_update_to_row(update: UserUpdate) -> Row:
    return _dump(update, USER_COLUMNS, partial=True)
