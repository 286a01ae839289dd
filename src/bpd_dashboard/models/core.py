"""Core domain models: tasks, programs, users and the application snapshot.

Attributes are snake_case; every model also accepts and emits the canonical
camelCase field names (``assignedTo``, ``plannedEndDate``...) through aliases,
so seed data and JSON exports keep the dashboard's original shape.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _today() -> str:
    return date.today().isoformat()


class TaskStatus(str, Enum):
    """Workflow status of a task."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class TaskPriority(str, Enum):
    """Task priority levels."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


def status_progress(status: TaskStatus | str) -> int:
    """Return the conventional progress for a status.

    OPEN maps to 0, COMPLETED to 100, everything else to 50.
    """
    status = TaskStatus(status)
    if status == TaskStatus.COMPLETED:
        return 100
    if status == TaskStatus.OPEN:
        return 0
    return 50


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Note(_Model):
    """A note attached to a task."""

    id: str
    content: str
    author: str
    author_id: str
    timestamp: str


class Task(_Model):
    """Task model representing a complete task entity.

    Attributes:
        id: Unique identifier, assigned by the client on creation
        name: Short task title
        description: Detailed description
        program: Program name (soft reference, not a foreign key)
        assigned_to: Denormalized assignee display name
        assigned_to_id: Assignee user id
        priority: Priority level
        status: Workflow status
        progress: Completion percentage, 0-100
        start_date: ISO date the task started
        planned_end_date: ISO date the task is due
        actual_end_date: ISO date the task finished, empty while open
        updated_at: Timestamp of the last write
        updated_by: Display name of the last writer
        notes: Attached notes
        dependent_tasks: Ids of tasks this one depends on (advisory)
    """

    id: str
    name: str
    description: str = ""
    program: str = ""
    assigned_to: str = ""
    assigned_to_id: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.OPEN
    progress: int = Field(default=0, ge=0, le=100)
    start_date: str = Field(default_factory=_today)
    planned_end_date: str = ""
    actual_end_date: str = ""
    updated_at: str = ""
    updated_by: str = ""
    notes: list[Note] = Field(default_factory=list)
    dependent_tasks: list[str] = Field(default_factory=list)


class TaskCreate(_Model):
    """Payload for creating a task.

    The id and the ``updated_at``/``updated_by`` audit fields are filled in
    by the sync service when the task is written.
    """

    name: str
    description: str = ""
    program: str = ""
    assigned_to: str = "Unassigned"
    assigned_to_id: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.OPEN
    progress: int = Field(default=0, ge=0, le=100)
    start_date: str = Field(default_factory=_today)
    planned_end_date: str = ""
    actual_end_date: str = ""
    notes: list[Note] = Field(default_factory=list)
    dependent_tasks: list[str] = Field(default_factory=list)


class TaskUpdate(_Model):
    """Partial task update. Only explicitly set fields are written."""

    name: str | None = None
    description: str | None = None
    program: str | None = None
    assigned_to: str | None = None
    assigned_to_id: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    start_date: str | None = None
    planned_end_date: str | None = None
    actual_end_date: str | None = None


class Program(_Model):
    """A program (grant) that tasks are filed under by name."""

    id: str
    name: str
    description: str = ""
    color: str = "indigo"
    created_at: str = ""
    created_by: str = ""


class ProgramCreate(_Model):
    name: str
    description: str = ""
    color: str = "indigo"


class ProgramUpdate(_Model):
    name: str | None = None
    description: str | None = None
    color: str | None = None


class User(_Model):
    """A team member."""

    id: str
    name: str
    email: str = ""
    role: str = "Staff"
    department: str = ""
    avatar: str | None = None


class UserCreate(_Model):
    name: str
    email: str = ""
    role: str = "Staff"
    department: str = "BEAD"


class UserUpdate(_Model):
    name: str | None = None
    email: str | None = None
    role: str | None = None
    department: str | None = None


class AppState(_Model):
    """The full application snapshot.

    ``current_user`` is re-resolved by id against ``users`` on every rebuild,
    so it never outlives the user it points at.
    """

    tasks: list[Task] = Field(default_factory=list)
    programs: list[Program] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    current_user: User | None = None

    def shallow_copy(self) -> AppState:
        """Return a new envelope with new top-level lists.

        The entity objects themselves are shared with the original.
        """
        return self.model_copy(
            update={
                "tasks": list(self.tasks),
                "programs": list(self.programs),
                "users": list(self.users),
            }
        )

    def find_user(self, user_id: str | None) -> User | None:
        if user_id is None:
            return None
        return next((u for u in self.users if u.id == user_id), None)

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)
