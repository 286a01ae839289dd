"""BPD dashboard domain models.

This package contains the Pydantic models for the dashboard's entities and
its configuration.
"""

from .config_models import AppConfig, StoreCredentials
from .core import (
    AppState,
    Note,
    Program,
    ProgramCreate,
    ProgramUpdate,
    Task,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    User,
    UserCreate,
    UserUpdate,
    status_progress,
)

__all__ = [
    # Task models
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskStatus",
    "TaskPriority",
    "Note",
    "status_progress",
    # Program models
    "Program",
    "ProgramCreate",
    "ProgramUpdate",
    # User models
    "User",
    "UserCreate",
    "UserUpdate",
    # Snapshot
    "AppState",
    # Configuration
    "AppConfig",
    "StoreCredentials",
]
