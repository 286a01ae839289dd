"""Output formatters for the dashboard views."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import yaml
from rich.panel import Panel
from rich.table import Table

from bpd_dashboard.constants import PRIORITY_STYLES, PROGRAM_STYLES, STATUS_STYLES
from bpd_dashboard.models import AppState, Program, Task, User
from bpd_dashboard.services.dashboard_service import KanbanColumn

from .console import get_console

console = get_console()


def format_output(data: Any, output_format: str = "table") -> bool:
    """Print *data* as json or yaml.

    Returns:
        False if the format is "table" and the caller should render itself
    """
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
        return True
    if output_format == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        return True
    return False


def dump_models(items: Sequence[Any]) -> list[dict]:
    """Serialize models with their canonical camelCase field names."""
    return [item.model_dump(mode="json", by_alias=True) for item in items]


def progress_bar(progress: int, width: int = 10) -> str:
    filled = round(progress / 100 * width)
    style = "green" if progress == 100 else "blue"
    return f"[{style}]{'█' * filled}[/{style}][dim]{'░' * (width - filled)}[/dim] {progress}%"


def render_tasks(tasks: Sequence[Task], programs: Sequence[Program] = ()) -> None:
    """Render the task list as a table."""
    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    colours = {p.name: PROGRAM_STYLES.get(p.color, "white") for p in programs}
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Task")
    table.add_column("Program")
    table.add_column("Assignee")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Progress")
    table.add_column("Due")

    for task in tasks:
        program_style = colours.get(task.program, "white")
        table.add_row(
            task.id,
            task.name,
            f"[{program_style}]{task.program}[/{program_style}]",
            task.assigned_to,
            f"[{PRIORITY_STYLES[task.priority]}]{task.priority.value}[/]",
            f"[{STATUS_STYLES[task.status]}]{task.status.value}[/]",
            progress_bar(task.progress),
            task.planned_end_date,
        )
    console.print(table)


def render_board(columns: Sequence[KanbanColumn]) -> None:
    """Render the kanban board, one column per status."""
    table = Table(show_header=True, header_style="bold", expand=True)
    for column in columns:
        table.add_column(
            f"[{STATUS_STYLES[column.status]}]{column.title}[/] ({len(column.tasks)})"
        )

    height = max((len(c.tasks) for c in columns), default=0)
    for i in range(height):
        cells = []
        for column in columns:
            if i < len(column.tasks):
                t = column.tasks[i]
                cells.append(f"[bold]{t.name}[/bold]\n[dim]{t.program} · {t.assigned_to}[/dim]")
            else:
                cells.append("")
        table.add_row(*cells)
    if height == 0:
        table.add_row(*["[dim]No tasks[/dim]"] * len(columns))
    console.print(table)


def render_programs(programs: Sequence[Program], task_counts: dict[str, int]) -> None:
    """Render the program registry with task counts."""
    if not programs:
        console.print("[yellow]No programs found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Program")
    table.add_column("Description")
    table.add_column("Tasks", justify="right")
    for program in programs:
        style = PROGRAM_STYLES.get(program.color, "white")
        table.add_row(
            program.id,
            f"[{style}]{program.name}[/{style}]",
            program.description,
            str(task_counts.get(program.name, 0)),
        )
    console.print(table)


def render_users(users: Sequence[User], current_user: User | None = None) -> None:
    """Render team members; the acting user is marked."""
    if not users:
        console.print("[yellow]No team members found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    table.add_column("Department")
    for user in users:
        marker = " [green]●[/green]" if current_user and current_user.id == user.id else ""
        table.add_row(user.id, f"{user.name}{marker}", user.email, user.role, user.department)
    console.print(table)


def render_status(label: str) -> None:
    style = {"CLOUD SYNC ACTIVE": "green", "LOCAL CACHE MODE": "yellow"}.get(label, "red")
    console.print(f"[bold {style}]● {label}[/bold {style}]")


def render_dashboard(
    state: AppState,
    *,
    status_counts: dict[str, int],
    program_counts: dict[str, int],
    completion: int,
    open_count: int,
    connectivity: str,
) -> None:
    """Render the operational overview."""
    render_status(connectivity)
    summary = (
        f"Total tasks: [bold]{len(state.tasks)}[/bold]   "
        f"Active: [bold]{open_count}[/bold]   "
        f"Completion: [bold]{completion}%[/bold]   "
        f"Team: [bold]{len(state.users)}[/bold]"
    )
    console.print(Panel(summary, title="Operational Overview"))

    by_status = Table(title="By status", show_header=True, header_style="bold")
    by_status.add_column("Status")
    by_status.add_column("Tasks", justify="right")
    for label, count in status_counts.items():
        by_status.add_row(label, str(count))
    console.print(by_status)

    by_program = Table(title="By program", show_header=True, header_style="bold")
    by_program.add_column("Program")
    by_program.add_column("Tasks", justify="right")
    for name, count in program_counts.items():
        by_program.add_row(name, str(count))
    console.print(by_program)


def format_error(message: str) -> None:
    """Format and display an error message on stderr."""
    get_console(stderr=True).print(f"[error]Error:[/error] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[success]Success:[/success] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message on stderr."""
    get_console(stderr=True).print(f"[warning]Warning:[/warning] {message}")
