"""Store connection and configuration commands."""

from __future__ import annotations

import typer

from bpd_dashboard.services.config_service import get_config_service
from bpd_dashboard.services.dashboard_service import connectivity_label
from bpd_dashboard.utils.logger import log_file_path
from bpd_dashboard.utils.ui.console import get_console
from bpd_dashboard.utils.ui.formatters import (
    format_output,
    format_success,
    format_warning,
    render_status,
)

from .decorators import AppError, command_wrapper
from .utils import open_service

app = typer.Typer(help="Store connection and configuration commands", no_args_is_help=True)
console = get_console()


def _mask(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


def _credential_source(config_service) -> str:
    if config_service.load_credentials() is not None:
        return "saved override"
    if config_service.env_credentials() is not None:
        return "environment"
    return "none"


@app.command("show")
@command_wrapper
async def show_settings(
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """Show connectivity, credential source and the acting user."""
    async with open_service() as service:
        credentials = service.config_service.resolve_credentials()
        current = service.state.current_user
        label = connectivity_label(service.is_connected, credentials is not None)
        info = {
            "status": label,
            "connection": service.connection_state.value,
            "credentials": _credential_source(service.config_service),
            "url": credentials.url if credentials else None,
            "key": _mask(credentials.key) if credentials else None,
            "currentUser": current.id if current else None,
            "logFile": str(log_file_path()),
        }
        if format_output(info, output):
            return

        render_status(label)
        console.print(f"Credentials: [cyan]{info['credentials']}[/cyan]")
        if credentials:
            console.print(f"Store URL:   {credentials.url}")
            console.print(f"Access key:  {info['key']}")
        if current:
            console.print(f"Acting as:   [bold]{current.name}[/bold] ({current.id})")
        console.print(f"Log file:    [muted]{info['logFile']}[/muted]")


@app.command("connect")
@command_wrapper
async def connect(
    url: str = typer.Argument(..., help="Store URL"),
    key: str = typer.Argument(..., help="Anonymous access key"),
) -> None:
    """Save a credential override and connect with it."""
    if not url.strip() or not key.strip():
        raise AppError("Store URL and key must both be non-empty.")

    async with open_service() as service:
        if not await service.save_credentials(url, key):
            format_warning("Credentials saved, but the store could not be reached.")
            raise typer.Exit(1)
        format_success(
            f"Connected: {len(service.state.tasks)} tasks, "
            f"{len(service.state.programs)} programs, {len(service.state.users)} team members"
        )


@app.command("disconnect")
@command_wrapper
async def disconnect(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Forget the saved credentials and fall back to local data."""
    if not yes and not typer.confirm("Forget the saved store credentials?"):
        raise typer.Exit(0)

    async with open_service() as service:
        await service.clear_credentials()
        if service.has_credentials():
            format_warning("Saved override removed; environment credentials still apply.")
        else:
            format_success("Store credentials cleared.")


@app.command("get")
@command_wrapper
def get_setting(
    key: str = typer.Argument(..., help="Configuration key (e.g., sync.poll_interval)"),
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        raise AppError(f"Configuration key '{key}' not found")
    console.print(value)


@app.command("set")
@command_wrapper
def set_setting(
    key: str = typer.Argument(..., help="Configuration key (e.g., sync.poll_interval)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value: str | bool = value
    if value.lower() in ("true", "false"):
        parsed_value = value.lower() == "true"

    try:
        get_config_service().set(key, parsed_value)
    except ValueError as e:
        raise AppError(str(e)) from e
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_settings(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults. Saved credentials are kept."""
    if not yes and not typer.confirm("Reset configuration to defaults?"):
        raise typer.Exit(0)
    get_config_service().reset_config()
    format_success("Configuration reset to defaults")
