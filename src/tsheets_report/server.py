"""MCP server exposing TSheets project reports over stdio."""

import json
import logging
from collections.abc import Callable

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from tsheets_report.config import Config
from tsheets_report.errors import ReportError
from tsheets_report.report.formatters import ExportFormat, format_report
from tsheets_report.report.service import ReportService
from tsheets_report.tsheets.client import TSheetsClient

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Timesheet reports from QuickBooks Time (TSheets). "
    "Reports cover a job code and every job code beneath it; use search_jobcodes "
    "to find ids when a project name is ambiguous. Dates are YYYY-MM-DD and "
    "default to the previous Sunday through Saturday."
)

READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=True)

ClientFactory = Callable[[], TSheetsClient]


async def project_report(
    client: TSheetsClient,
    start_date: str = "",
    end_date: str = "",
    project: str = "",
    jobcode_id: int = 0,
    require_single: bool = False,
    format: str = "json",
) -> str:
    """Run a project report and render it; failures come back as "Error: ..." text."""
    try:
        fmt = ExportFormat(format)
    except ValueError:
        options = ", ".join(f.value for f in ExportFormat)
        return f"Error: unsupported format '{format}'. Use one of: {options}"

    try:
        report = await ReportService(client).project_report(
            start_date=start_date,
            end_date=end_date,
            project=project,
            jobcode_id=jobcode_id,
            require_single=require_single,
        )
    except ReportError as e:
        logger.error(f"Project report failed: {e}")
        return f"Error: {e}"
    return format_report(report, fmt)


async def find_jobcodes(client: TSheetsClient, search: str = "", active: str = "both") -> str:
    """Search job codes and return the matches as JSON."""
    if active not in ("yes", "no", "both"):
        return f"Error: active must be 'yes', 'no' or 'both', not '{active}'"
    try:
        matches = await ReportService(client).search(search=search, active=active)
    except ReportError as e:
        logger.error(f"Jobcode search failed: {e}")
        return f"Error: {e}"
    return json.dumps([match.model_dump(mode="json") for match in matches], indent=2)


async def project_summary(
    client: TSheetsClient,
    start_date: str = "",
    end_date: str = "",
    project: str = "",
    jobcode_id: int = 0,
) -> str:
    """TSheets' own per-employee and per-job code totals as camelCase JSON."""
    try:
        summary = await ReportService(client).project_summary(
            start_date=start_date, end_date=end_date, project=project, jobcode_id=jobcode_id
        )
    except ReportError as e:
        logger.error(f"Project summary failed: {e}")
        return f"Error: {e}"
    return json.dumps(summary.model_dump(mode="json", by_alias=True), indent=2)


async def project_notes(client: TSheetsClient, project_id: int = 0, jobcode_id: int = 0) -> str:
    try:
        notes = await ReportService(client).project_notes(
            project_id=project_id, jobcode_id=jobcode_id
        )
    except ReportError as e:
        logger.error(f"Project notes failed: {e}")
        return f"Error: {e}"
    return json.dumps(notes.model_dump(mode="json"), indent=2)


async def project_details(client: TSheetsClient, jobcode_id: int = 0, project: str = "") -> str:
    try:
        details = await ReportService(client).project_details(
            jobcode_id=jobcode_id, project=project
        )
    except ReportError as e:
        logger.error(f"Project details failed: {e}")
        return f"Error: {e}"
    return json.dumps(details.model_dump(mode="json"), indent=2)


def build_server(config: Config, client_factory: ClientFactory | None = None) -> FastMCP:
    """Create the MCP server.

    Args:
        config: Application configuration.
        client_factory: Builds one API client per tool call. Defaults to a
            client from the configuration.
    """
    make_client = client_factory or (lambda: TSheetsClient.from_config(config))
    server = FastMCP("tsheets-report", instructions=INSTRUCTIONS)

    @server.tool(
        name="get_project_report",
        description=(
            "Hours logged against a project (job code and all its sub-jobs) for a date "
            "range, grouped by day and employee. Identify the project by name, short code "
            "or jobcode_id. Leave both dates empty for last week. format is json, text, "
            "markdown or csv. Set require_single=true to get an error listing candidates "
            "when a name matches several job codes instead of combining them."
        ),
        annotations=READ_ONLY,
    )
    async def get_project_report(
        start_date: str = "",
        end_date: str = "",
        project: str = "",
        jobcode_id: int = 0,
        require_single: bool = False,
        format: str = "json",
    ) -> str:
        async with make_client() as client:
            return await project_report(
                client,
                start_date=start_date,
                end_date=end_date,
                project=project,
                jobcode_id=jobcode_id,
                require_single=require_single,
                format=format,
            )

    @server.tool(
        name="search_jobcodes",
        description=(
            "Find job codes by name, short code, hierarchy path or id. "
            "active filters by status: yes, no or both."
        ),
        annotations=READ_ONLY,
    )
    async def search_jobcodes(search: str = "", active: str = "both") -> str:
        async with make_client() as client:
            return await find_jobcodes(client, search=search, active=active)

    @server.tool(
        name="get_project_report_summary",
        description=(
            "Total hours per employee and per job code for a date range, as computed by "
            "TSheets. Faster than get_project_report when individual entries are not "
            "needed. Optionally limit to a project by name or jobcode_id."
        ),
        annotations=READ_ONLY,
    )
    async def get_project_report_summary(
        start_date: str = "", end_date: str = "", project: str = "", jobcode_id: int = 0
    ) -> str:
        async with make_client() as client:
            return await project_summary(
                client,
                start_date=start_date,
                end_date=end_date,
                project=project,
                jobcode_id=jobcode_id,
            )

    @server.tool(
        name="get_project_notes",
        description=(
            "Notes posted on a project with their authors and attached files, newest "
            "first. Give project_id, or jobcode_id to use that job code's project."
        ),
        annotations=READ_ONLY,
    )
    async def get_project_notes(project_id: int = 0, jobcode_id: int = 0) -> str:
        async with make_client() as client:
            return await project_notes(client, project_id=project_id, jobcode_id=jobcode_id)

    @server.tool(
        name="get_project_details",
        description=(
            "A job code with its project record (status, dates, description) and a "
            "digest of the project's notes. The project name must match exactly one "
            "job code; otherwise the error lists the ids to choose from."
        ),
        annotations=READ_ONLY,
    )
    async def get_project_details(jobcode_id: int = 0, project: str = "") -> str:
        async with make_client() as client:
            return await project_details(client, jobcode_id=jobcode_id, project=project)

    return server
