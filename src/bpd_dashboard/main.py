"""Main entry point for the BPD dashboard CLI."""

import typer
from rich.markdown import Markdown
from rich.panel import Panel

from bpd_dashboard import __version__
from bpd_dashboard.commands import programs, settings, tasks, team
from bpd_dashboard.commands.decorators import command_wrapper
from bpd_dashboard.commands.utils import open_service, set_acting_user
from bpd_dashboard.services.config_service import get_config_service
from bpd_dashboard.services.dashboard_service import (
    completion_rate,
    connectivity_label,
    kanban_columns,
    open_task_count,
    program_breakdown,
    status_breakdown,
)
from bpd_dashboard.services.report_service import ReportService
from bpd_dashboard.utils.logger import configure
from bpd_dashboard.utils.ui.console import get_console
from bpd_dashboard.utils.ui.formatters import (
    dump_models,
    format_output,
    render_board,
    render_dashboard,
)

app = typer.Typer(
    name="bpd",
    help="Task, program and team dashboard for the Broadband Programs Division",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(programs.app, name="programs", help="Program management commands")
app.add_typer(team.app, name="team", help="Team management commands")
app.add_typer(settings.app, name="settings", help="Store connection and configuration")


@app.callback()
def main_callback(
    acting_user: str = typer.Option(None, "--as", help="Act as this user id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo log records to stderr"),
) -> None:
    """Task, program and team dashboard for the Broadband Programs Division."""
    set_acting_user(acting_user)
    configure(get_config_service().config.logging.level, verbose=verbose)


@app.command()
@command_wrapper
async def dashboard(
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """Show the operational overview."""
    async with open_service() as service:
        state = service.state
        stats = {
            "status": connectivity_label(service.is_connected, service.has_credentials()),
            "totalTasks": len(state.tasks),
            "openTasks": open_task_count(state.tasks),
            "completionRate": completion_rate(state.tasks),
            "byStatus": status_breakdown(state.tasks),
            "byProgram": program_breakdown(state),
        }
        if format_output(stats, output):
            return
        render_dashboard(
            state,
            status_counts=stats["byStatus"],
            program_counts=stats["byProgram"],
            completion=stats["completionRate"],
            open_count=stats["openTasks"],
            connectivity=stats["status"],
        )


@app.command()
@command_wrapper
async def board(
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json, yaml)"),
) -> None:
    """Show tasks grouped into kanban columns."""
    async with open_service() as service:
        columns = kanban_columns(service.state.tasks)
        data = {column.title: dump_models(column.tasks) for column in columns}
        if not format_output(data, output):
            render_board(columns)


@app.command()
@command_wrapper
async def report() -> None:
    """Generate an AI narrative report over the current tasks."""
    async with open_service() as service:
        tasks_snapshot = service.state.tasks
        with console.status("[bold]Generating report...[/bold]"):
            text = await ReportService(service.config_service).generate_report(tasks_snapshot)
        console.print(Panel(Markdown(text), title="Project Intelligence"))


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]BPD Dashboard[/bold] version [cyan]{__version__}[/cyan]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
