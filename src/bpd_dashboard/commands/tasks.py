"""Task management commands."""

from __future__ import annotations

import typer

from bpd_dashboard.models import TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from bpd_dashboard.services.dashboard_service import filter_tasks
from bpd_dashboard.services.sync_service import StateSyncService
from bpd_dashboard.utils.ui.formatters import (
    dump_models,
    format_output,
    format_success,
    format_warning,
    render_tasks,
)

from .decorators import AppError, command_wrapper
from .utils import open_service, require_connection

app = typer.Typer(help="Task management commands", no_args_is_help=True)


def _resolve_assignee(service: StateSyncService, user_id: str) -> str:
    user = service.state.find_user(user_id)
    if user is None:
        raise AppError(f"Unknown user id: {user_id}")
    return user.name


def _require_task(service: StateSyncService, task_id: str) -> None:
    if service.state.find_task(task_id) is None:
        raise AppError(f"Task not found: {task_id}")


@app.command("list")
@command_wrapper
async def list_tasks(
    search: str = typer.Option("", "--search", "-s", help="Match task name or assignee"),
    program: str = typer.Option("All", "--program", "-p", help="Filter by program name"),
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """List tasks."""
    async with open_service() as service:
        state = service.state
        tasks = filter_tasks(state.tasks, search=search, program=program)
        if not format_output(dump_models(tasks), output):
            render_tasks(tasks, state.programs)


@app.command("add")
@command_wrapper
async def add_task(
    name: str = typer.Argument(..., help="Task name"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
    program: str = typer.Option(None, "--program", "-p", help="Program name"),
    assignee: str = typer.Option(None, "--assignee", "-a", help="Assigned user id"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", case_sensitive=False),
    status: TaskStatus = typer.Option(TaskStatus.OPEN, "--status", case_sensitive=False),
    due: str = typer.Option("", "--due", help="Planned end date (YYYY-MM-DD)"),
) -> None:
    """Create a task."""
    async with open_service() as service:
        require_connection(service)
        state = service.state
        program = program or (state.programs[0].name if state.programs else "")
        assignee = assignee or (state.users[0].id if state.users else "")
        payload = TaskCreate(
            name=name,
            description=description,
            program=program,
            assigned_to=_resolve_assignee(service, assignee) if assignee else "Unassigned",
            assigned_to_id=assignee,
            priority=priority,
            status=status,
            progress=0,
            planned_end_date=due,
        )
        task_id = await service.add_task(payload)
        if task_id and service.state.find_task(task_id):
            format_success(f"Task created: {task_id}")
        else:
            format_warning("The store did not confirm the new task.")


@app.command("update")
@command_wrapper
async def update_task(
    task_id: str = typer.Argument(..., help="Task id"),
    name: str = typer.Option(None, "--name", help="New name"),
    description: str = typer.Option(None, "--description", "-d", help="New description"),
    program: str = typer.Option(None, "--program", "-p", help="New program name"),
    assignee: str = typer.Option(None, "--assignee", "-a", help="New assigned user id"),
    priority: TaskPriority = typer.Option(None, "--priority", case_sensitive=False),
    progress: int = typer.Option(None, "--progress", min=0, max=100),
    due: str = typer.Option(None, "--due", help="Planned end date (YYYY-MM-DD)"),
) -> None:
    """Update task fields."""
    async with open_service() as service:
        require_connection(service)
        _require_task(service, task_id)
        fields = {
            "name": name,
            "description": description,
            "program": program,
            "priority": priority,
            "progress": progress,
            "planned_end_date": due,
        }
        if assignee is not None:
            fields["assigned_to"] = _resolve_assignee(service, assignee)
            fields["assigned_to_id"] = assignee
        updates = TaskUpdate(**{k: v for k, v in fields.items() if v is not None})
        if not updates.model_fields_set:
            raise AppError("Nothing to update; pass at least one option.")
        await service.update_task(task_id, updates)
        format_success(f"Task updated: {task_id}")


@app.command("status")
@command_wrapper
async def set_status(
    task_id: str = typer.Argument(..., help="Task id"),
    status: TaskStatus = typer.Argument(..., case_sensitive=False, help="New status"),
) -> None:
    """Move a task to a new status."""
    async with open_service() as service:
        require_connection(service)
        _require_task(service, task_id)
        await service.update_task_status(task_id, status)
        task = service.state.find_task(task_id)
        if task is not None and task.status == status:
            format_success(f"{task.name}: {status.value} ({task.progress}%)")
        else:
            format_warning("The store did not confirm the status change.")


@app.command("delete")
@command_wrapper
async def delete_task(
    task_id: str = typer.Argument(..., help="Task id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task."""
    async with open_service() as service:
        require_connection(service)
        _require_task(service, task_id)
        if not yes and not typer.confirm(f"Delete task {task_id}?"):
            raise typer.Exit(0)
        await service.delete_task(task_id)
        if service.state.find_task(task_id) is None:
            format_success(f"Task deleted: {task_id}")
        else:
            format_warning("The store did not confirm the deletion.")
