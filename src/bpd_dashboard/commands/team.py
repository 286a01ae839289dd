"""Team member commands."""

from __future__ import annotations

import typer

from bpd_dashboard.models import UserCreate, UserUpdate
from bpd_dashboard.utils.ui.formatters import (
    dump_models,
    format_output,
    format_success,
    format_warning,
    render_users,
)

from .decorators import AppError, command_wrapper
from .utils import open_service, require_connection

app = typer.Typer(help="Team management commands", no_args_is_help=True)


@app.command("list")
@command_wrapper
async def list_users(
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """List team members."""
    async with open_service() as service:
        state = service.state
        if not format_output(dump_models(state.users), output):
            render_users(state.users, state.current_user)


@app.command("add")
@command_wrapper
async def add_user(
    name: str = typer.Argument(..., help="Full name"),
    email: str = typer.Option("", "--email", "-e"),
    role: str = typer.Option("Staff", "--role", "-r", help="Staff, Manager or Admin"),
    department: str = typer.Option("BEAD", "--department", help="BEAD, CPF, USDA or Operations"),
) -> None:
    """Add a team member."""
    async with open_service() as service:
        require_connection(service)
        user_id = await service.add_user(
            UserCreate(name=name, email=email, role=role, department=department)
        )
        if user_id and service.state.find_user(user_id):
            format_success(f"Team member added: {user_id}")
        else:
            format_warning("The store did not confirm the new team member.")


@app.command("update")
@command_wrapper
async def update_user(
    user_id: str = typer.Argument(..., help="User id"),
    name: str = typer.Option(None, "--name"),
    email: str = typer.Option(None, "--email", "-e"),
    role: str = typer.Option(None, "--role", "-r"),
    department: str = typer.Option(None, "--department"),
) -> None:
    """Update a team member. Task assignee names are not rewritten."""
    fields = {"name": name, "email": email, "role": role, "department": department}
    updates = UserUpdate(**{k: v for k, v in fields.items() if v is not None})
    if not updates.model_fields_set:
        raise AppError("Nothing to update; pass at least one option.")

    async with open_service() as service:
        require_connection(service)
        if service.state.find_user(user_id) is None:
            raise AppError(f"User not found: {user_id}")
        await service.update_user(user_id, updates)
        format_success(f"Team member updated: {user_id}")


@app.command("delete")
@command_wrapper
async def delete_user(
    user_id: str = typer.Argument(..., help="User id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove a team member."""
    async with open_service() as service:
        require_connection(service)
        if not yes and not typer.confirm(f"Remove {user_id} from the team?"):
            raise typer.Exit(0)
        await service.delete_user(user_id)
        format_success(f"Team member removed: {user_id}")
