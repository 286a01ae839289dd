"""Program (grant) management commands."""

from __future__ import annotations

from enum import Enum

import typer

from bpd_dashboard.constants import PROGRAM_PALETTE
from bpd_dashboard.models import ProgramCreate, ProgramUpdate
from bpd_dashboard.services.dashboard_service import program_breakdown
from bpd_dashboard.utils.ui.formatters import (
    dump_models,
    format_output,
    format_success,
    format_warning,
    render_programs,
)

from .decorators import AppError, command_wrapper
from .utils import open_service, require_connection

app = typer.Typer(help="Program management commands", no_args_is_help=True)

Color = Enum("Color", {c: c for c in PROGRAM_PALETTE}, type=str)


@app.command("list")
@command_wrapper
async def list_programs(
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """List programs with their task counts."""
    async with open_service() as service:
        state = service.state
        if not format_output(dump_models(state.programs), output):
            render_programs(state.programs, program_breakdown(state))


@app.command("add")
@command_wrapper
async def add_program(
    name: str = typer.Argument(..., help="Program name"),
    description: str = typer.Option("", "--description", "-d"),
    color: Color = typer.Option(Color("indigo"), "--color", "-c", help="Brand colour"),
) -> None:
    """Create a program."""
    async with open_service() as service:
        require_connection(service)
        program_id = await service.add_program(
            ProgramCreate(name=name, description=description, color=color.value)
        )
        if program_id and any(p.id == program_id for p in service.state.programs):
            format_success(f"Program created: {program_id}")
        else:
            format_warning("The store did not confirm the new program.")


@app.command("update")
@command_wrapper
async def update_program(
    program_id: str = typer.Argument(..., help="Program id"),
    name: str = typer.Option(None, "--name", help="New name; existing tasks keep the old name"),
    description: str = typer.Option(None, "--description", "-d"),
    color: Color = typer.Option(None, "--color", "-c"),
) -> None:
    """Update a program."""
    fields = {
        "name": name,
        "description": description,
        "color": color.value if color else None,
    }
    updates = ProgramUpdate(**{k: v for k, v in fields.items() if v is not None})
    if not updates.model_fields_set:
        raise AppError("Nothing to update; pass at least one option.")

    async with open_service() as service:
        require_connection(service)
        if not any(p.id == program_id for p in service.state.programs):
            raise AppError(f"Program not found: {program_id}")
        await service.update_program(program_id, updates)
        format_success(f"Program updated: {program_id}")


@app.command("delete")
@command_wrapper
async def delete_program(
    program_id: str = typer.Argument(..., help="Program id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a program. Tasks filed under it are kept."""
    async with open_service() as service:
        require_connection(service)
        if not yes and not typer.confirm(f"Delete program {program_id}?"):
            raise typer.Exit(0)
        await service.delete_program(program_id)
        format_success(f"Program deleted: {program_id}")
