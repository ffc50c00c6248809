"""Command-line interface for TSheets project reports."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from tsheets_report import __version__
from tsheets_report.config import Config
from tsheets_report.errors import AmbiguousProjectError, ReportError
from tsheets_report.report import ExportFormat, ReportService, format_report
from tsheets_report.report.aggregator import ShiftReport
from tsheets_report.report.projects import ProjectDetails, ProjectNotes, ProjectSummary
from tsheets_report.report.resolver import JobcodeMatch
from tsheets_report.server import build_server
from tsheets_report.tsheets import TokenStore, TSheetsClient
from tsheets_report.utils import get_logger, setup_logging

app = typer.Typer(help="Timesheet reports from QuickBooks Time (TSheets)")
console = Console()
logger = get_logger(__name__)

CONFIG_DIR_OPTION = typer.Option(
    None,
    "--config-dir",
    help="Configuration directory. Defaults to ~/.tsheets-report/",
)
JSON_OPTION = typer.Option(False, "--json", help="Print JSON instead of tables.")


def _load_config(
    config_dir: Optional[Path], verbose: bool = False, console_log: bool = False
) -> Config:
    config = Config(config_dir)
    setup_logging(
        log_level=logging.DEBUG if verbose else config.log_level,
        config_dir=config.storage.config_dir,
        console=verbose or console_log,
    )
    return config


async def _run_report(config: Config, **kwargs: Any) -> ShiftReport:
    async with TSheetsClient.from_config(config) as client:
        return await ReportService(client).project_report(**kwargs)


async def _run_search(config: Config, search: Optional[str], active: str) -> list[JobcodeMatch]:
    async with TSheetsClient.from_config(config) as client:
        return await ReportService(client).search(search=search, active=active)


async def _run_service(config: Config, method: str, **kwargs: Any) -> Any:
    async with TSheetsClient.from_config(config) as client:
        return await getattr(ReportService(client), method)(**kwargs)


def _fail(action: str, error: ReportError) -> NoReturn:
    if isinstance(error, AmbiguousProjectError):
        console.print(f'[yellow]Multiple jobcodes match "{error.reference}":[/yellow]')
        for candidate in error.candidates:
            console.print(f"  {candidate.id}: {candidate.full_path}")
        console.print("Re-run with --jobcode-id to pick one.")
    else:
        logger.error(f"{action} failed: {error}")
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(code=1)


def _print_summary(report: ShiftReport) -> None:
    table = Table(title=f"{report.job_name} ({report.start_date} to {report.end_date})")
    table.add_column("Employee", style="cyan")
    table.add_column("Hours", style="magenta", justify="right")
    for employee in report.employee_summaries:
        table.add_row(employee.name, f"{employee.total_hours:.2f}")
    table.add_row("[bold]Total[/bold]", f"[bold]{report.total_hours:.2f}[/bold]")
    console.print(table)


@app.command()
def report(
    start_date: Optional[str] = typer.Option(
        None,
        "--start-date",
        help="First day (YYYY-MM-DD). Defaults to last Sunday-Saturday week.",
    ),
    end_date: Optional[str] = typer.Option(
        None,
        "--end-date",
        help="Last day (YYYY-MM-DD). Defaults to start date.",
    ),
    project: Optional[str] = typer.Option(
        None,
        "--project",
        "-p",
        help="Job code name, short code or id. Sub-jobs are included.",
    ),
    jobcode_id: Optional[int] = typer.Option(
        None,
        "--jobcode-id",
        help="Job code id. Takes precedence over --project.",
    ),
    require_single: bool = typer.Option(
        False,
        "--require-single",
        help="Fail instead of combining when --project matches several job codes.",
    ),
    fmt: ExportFormat = typer.Option(
        ExportFormat.TEXT,
        "--format",
        "-f",
        help="Output format.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to a file instead of stdout.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Report hours logged against a project for a date range."""
    config = _load_config(config_dir, verbose)

    try:
        shift_report = asyncio.run(
            _run_report(
                config,
                start_date=start_date,
                end_date=end_date,
                project=project,
                jobcode_id=jobcode_id,
                require_single=require_single,
            )
        )
    except ReportError as e:
        _fail("Report", e)

    rendered = format_report(shift_report, fmt)
    if output:
        output.write_text(rendered)
        console.print(f"[green]✓ Report written to {output}[/green]")
        if shift_report.message:
            console.print(f"[yellow]{shift_report.message}[/yellow]")
        _print_summary(shift_report)
    else:
        typer.echo(rendered)


@app.command()
def search(
    text: Optional[str] = typer.Argument(
        None,
        help="Text to match in path, name, short code or id.",
    ),
    active: str = typer.Option(
        "both",
        "--active",
        help="Filter by status: yes, no or both.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Search job codes."""
    if active not in ("yes", "no", "both"):
        console.print("[red]--active must be yes, no or both[/red]")
        raise typer.Exit(code=1)

    config = _load_config(config_dir)
    try:
        matches = asyncio.run(_run_search(config, text, active))
    except ReportError as e:
        _fail("Search", e)

    if not matches:
        console.print("[yellow]No jobcodes found.[/yellow]")
        return

    table = Table(title="Jobcodes")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Path", style="magenta")
    table.add_column("Short Code")
    table.add_column("Active")
    for match in matches:
        table.add_row(
            str(match.id),
            match.full_path,
            match.short_code or "-",
            "yes" if match.active else "no",
        )
    console.print(table)


@app.command()
def summary(
    start_date: Optional[str] = typer.Option(
        None,
        "--start-date",
        help="First day (YYYY-MM-DD). Defaults to last Sunday-Saturday week.",
    ),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Last day (YYYY-MM-DD)."),
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Job code name, short code or id."
    ),
    jobcode_id: Optional[int] = typer.Option(None, "--jobcode-id", help="Job code id."),
    as_json: bool = JSON_OPTION,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show TSheets' hour totals per employee and per job code."""
    config = _load_config(config_dir)
    try:
        result: ProjectSummary = asyncio.run(
            _run_service(
                config,
                "project_summary",
                start_date=start_date,
                end_date=end_date,
                project=project,
                jobcode_id=jobcode_id,
            )
        )
    except ReportError as e:
        _fail("Summary", e)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
        return
    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]")

    users = Table(title=f"{result.job_name} ({result.start_date} to {result.end_date})")
    users.add_column("Employee", style="cyan")
    users.add_column("Hours", style="magenta", justify="right")
    for user in result.user_totals:
        users.add_row(user.user_name, f"{user.hours:.2f}")
    users.add_row("[bold]Total[/bold]", f"[bold]{result.total_hours:.2f}[/bold]")
    console.print(users)

    jobcodes = Table(title="By job code")
    jobcodes.add_column("ID", style="cyan", justify="right")
    jobcodes.add_column("Job code")
    jobcodes.add_column("Hours", style="magenta", justify="right")
    for jobcode in result.jobcode_totals:
        jobcodes.add_row(str(jobcode.jobcode_id), jobcode.jobcode_name, f"{jobcode.hours:.2f}")
    console.print(jobcodes)


@app.command()
def notes(
    project_id: Optional[int] = typer.Option(None, "--project-id", help="Project id."),
    jobcode_id: Optional[int] = typer.Option(
        None, "--jobcode-id", help="Job code whose project to use."
    ),
    as_json: bool = JSON_OPTION,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show the notes posted on a project."""
    if not project_id and not jobcode_id:
        console.print("[red]Give --project-id or --jobcode-id[/red]")
        raise typer.Exit(code=1)

    config = _load_config(config_dir)
    try:
        result: ProjectNotes = asyncio.run(
            _run_service(config, "project_notes", project_id=project_id, jobcode_id=jobcode_id)
        )
    except ReportError as e:
        _fail("Notes", e)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return
    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    title = result.project.name if result.project else ""
    console.print(f"[bold cyan]{title}[/bold cyan] ({result.total_notes} notes)")
    for note in result.notes:
        created = f"{note.created:%Y-%m-%d %H:%M}" if note.created else "undated"
        console.print(f"\n[cyan]{created}[/cyan] [bold]{note.created_by.name}[/bold]")
        console.print(note.note)
        for file in note.files:
            console.print(f"  📎 {file.file_name}")


@app.command()
def details(
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Job code name, short code or id; must match one."
    ),
    jobcode_id: Optional[int] = typer.Option(None, "--jobcode-id", help="Job code id."),
    as_json: bool = JSON_OPTION,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show a job code, its project record and its notes."""
    if not project and not jobcode_id:
        console.print("[red]Give --project or --jobcode-id[/red]")
        raise typer.Exit(code=1)

    config = _load_config(config_dir)
    try:
        result: ProjectDetails = asyncio.run(
            _run_service(config, "project_details", jobcode_id=jobcode_id, project=project)
        )
    except ReportError as e:
        _fail("Details", e)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    if result.jobcode:
        console.print(f"[bold cyan]{result.jobcode.full_path}[/bold cyan] (#{result.jobcode.id})")
    if result.project:
        console.print(f"  Status:   {result.project.status or '-'}")
        if result.project.due_date:
            console.print(f"  Due:      {result.project.due_date:%Y-%m-%d}")
        if result.project.description:
            console.print(f"  {result.project.description}")
    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]")
    if not result.notes:
        return

    table = Table(title=f"Notes ({result.total_notes}, {result.total_files} files)")
    table.add_column("Created", style="cyan")
    table.add_column("Author")
    table.add_column("Note")
    table.add_column("Files", justify="right")
    for note in result.notes:
        created = f"{note.created:%Y-%m-%d}" if note.created else "-"
        table.add_row(created, note.author, note.note, str(note.file_count))
    console.print(table)


@app.command()
def serve(config_dir: Optional[Path] = CONFIG_DIR_OPTION) -> None:
    """Run the MCP server on stdio."""
    config = _load_config(config_dir, console_log=True)
    logger.info(f"TSheets Report MCP server v{__version__}")
    build_server(config).run()


def _token_status(config: Config) -> None:
    token = TokenStore(config.token_file).load()
    if token:
        expires = f"{token.expires:%Y-%m-%d %H:%M} UTC"
        console.print(f"  Token:    [green]✓ Valid until {expires}[/green]")
    else:
        console.print(f"  Token:    [yellow]✗ No valid token at {config.token_file}[/yellow]")


@app.command()
def configure(
    clear_token: bool = typer.Option(
        False,
        "--clear-token",
        help="Delete the stored OAuth token.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Configure the TSheets API connection."""
    config = _load_config(config_dir)

    if clear_token:
        TokenStore(config.token_file).clear()
        console.print("[green]✓ Stored token removed[/green]")
        return

    console.print("[bold cyan]TSheets Report Configuration[/bold cyan]")
    console.print(f"  API:      {config.base_url}")
    _token_status(config)
    console.print()

    base_url = Prompt.ask("API base URL", default=config.base_url)
    timeout = Prompt.ask("Request timeout (seconds)", default=str(config.timeout))
    token_file = Prompt.ask("Token file", default=str(config.token_file))

    try:
        timeout_value = float(timeout)
    except ValueError:
        console.print("[red]Timeout must be a number[/red]")
        raise typer.Exit(code=1)

    config.update(
        "tsheets",
        {"base_url": base_url, "timeout": timeout_value, "token_file": token_file},
    )
    console.print(f"[green]✓ Configuration saved to {config.storage.config_file}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"TSheets Report v{__version__}")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
