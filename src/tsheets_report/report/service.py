"""Report entry points shared by the CLI and the MCP server."""

import logging
from datetime import date

from tsheets_report.errors import AmbiguousProjectError, ReportError
from tsheets_report.report.aggregator import ShiftReport, aggregate
from tsheets_report.report.directory import JobcodeDirectory
from tsheets_report.report.pipeline import ALL_JOBS, TimesheetPipeline
from tsheets_report.report.projects import (
    ProjectDetails,
    ProjectNotes,
    ProjectSource,
    ProjectSummary,
    build_project_details,
    build_project_notes,
    first_project,
    summarize_totals,
)
from tsheets_report.report.resolver import (
    ActiveFilter,
    Ambiguous,
    JobcodeMatch,
    Matched,
    NotFound,
    ProjectReference,
    ResolvedFilter,
    resolve,
    search_jobcodes,
)
from tsheets_report.utils.dates import resolve_date_range

module_logger = logging.getLogger(__name__)


class ReportService:
    """Runs project reports, summaries, notes and job code searches for one API client."""

    def __init__(self, client: ProjectSource, logger: logging.Logger | None = None) -> None:
        """Initialize report service.

        Args:
            client: TSheets API client.
            logger: Logger for diagnostics. Defaults to the module logger.
        """
        self.client = client
        self.logger = logger or module_logger
        self.pipeline = TimesheetPipeline(client, logger=self.logger)

    async def project_report(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        project: str | None = None,
        jobcode_id: int | None = None,
        require_single: bool = False,
        today: date | None = None,
    ) -> ShiftReport:
        """Build the shift report for a project and date range.

        Args:
            start_date: First day as YYYY-MM-DD; empty with end_date means last week.
            end_date: Last day as YYYY-MM-DD.
            project: Job code name, short code or id as text.
            jobcode_id: Job code id; 0 or None means not given.
            require_single: Fail when the project text matches several job codes.
            today: Reference day for the default range.

        Returns:
            The aggregated report. Unknown projects give an empty report whose
            message says no job code matched.

        Raises:
            InvalidDateRangeError: On malformed or reversed dates.
            AmbiguousProjectError: If require_single and several job codes match.
            TSheetsAPIError: If a required upstream call fails.
        """
        start, end = resolve_date_range(start_date, end_date, today=today)
        reference = ProjectReference(jobcode_id=jobcode_id or None, name=project or None)

        result = await self.pipeline.get_enriched_timesheets(
            start, end, reference=reference, require_single=require_single
        )
        report = aggregate(
            result.entries,
            job_name=result.job_name,
            start_date=start,
            end_date=end,
            message=result.message,
        )
        self.logger.info(
            f"Report for {report.job_name}: {report.total_entries} entries, "
            f"{report.total_hours:.2f} hours"
        )
        return report

    async def search(
        self, search: str | None = None, active: ActiveFilter = "both"
    ) -> list[JobcodeMatch]:
        """Search job codes by path, name, short code or id.

        Raises:
            TSheetsAPIError: If the job code listing fails.
        """
        directory = await JobcodeDirectory.load(self.client, logger=self.logger)
        return search_jobcodes(directory, search=search, active=active)

    async def _resolve(
        self, reference: ProjectReference, require_single: bool
    ) -> tuple[JobcodeDirectory, ResolvedFilter]:
        directory = await JobcodeDirectory.load(self.client, logger=self.logger)
        resolved = resolve(reference, directory, require_single=require_single, logger=self.logger)
        if isinstance(resolved, Ambiguous):
            raise AmbiguousProjectError(str(resolved.reference), list(resolved.candidates))
        return directory, resolved

    async def project_summary(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        project: str | None = None,
        jobcode_id: int | None = None,
        require_single: bool = False,
        today: date | None = None,
    ) -> ProjectSummary:
        """Hours per employee and per job code as totalled by TSheets.

        Takes the same arguments as project_report but asks TSheets for its
        own totals instead of fetching individual timesheets.

        Raises:
            InvalidDateRangeError: On malformed or reversed dates.
            AmbiguousProjectError: If require_single and several job codes match.
            TSheetsAPIError: If a required upstream call fails.
        """
        start, end = resolve_date_range(start_date, end_date, today=today)
        reference = ProjectReference(jobcode_id=jobcode_id or None, name=project or None)

        jobcode_ids = None
        job_name = ALL_JOBS
        if not reference.is_empty:
            _, resolved = await self._resolve(reference, require_single)
            if isinstance(resolved, NotFound):
                return ProjectSummary(
                    job_name=str(reference),
                    start_date=start,
                    end_date=end,
                    message=f"No jobcode found matching: {reference}",
                )
            if isinstance(resolved, Matched):
                jobcode_ids = resolved.ids
                job_name = resolved.display_name

        self.logger.info(f"Getting project report totals from {start} to {end} for {job_name}")
        totals = await self.client.get_project_report(start, end, jobcode_ids=jobcode_ids)
        return summarize_totals(totals, job_name=job_name, start_date=start, end_date=end)

    async def project_notes(
        self, project_id: int | None = None, jobcode_id: int | None = None
    ) -> ProjectNotes:
        """Notes on a project, with authors and attached files.

        Args:
            project_id: Project id.
            jobcode_id: Job code whose project to use when no project id is given.

        Returns:
            The notes, newest first. A job code without a project gives no notes
            and a message saying so.

        Raises:
            ReportError: If neither id is given.
            TSheetsAPIError: If a required upstream call fails.
        """
        if not project_id and not jobcode_id:
            raise ReportError("Either project_id or jobcode_id is required")

        if project_id:
            project = (await self.client.get_projects(ids=[project_id])).get(project_id)
            missing = f"No project found with id {project_id}"
        else:
            project = first_project(await self.client.get_projects(jobcode_ids=[jobcode_id]))
            missing = f"Jobcode {jobcode_id} has no associated project"

        directory = await JobcodeDirectory.load(self.client, logger=self.logger)
        jobcode = directory.get(project.jobcode_id if project else jobcode_id)
        match = JobcodeMatch.from_jobcode(jobcode, directory) if jobcode else None

        if project is None:
            self.logger.info(missing)
            return ProjectNotes(
                jobcode=match, message=f"{missing}. Project notes are not available."
            )

        batch = await self.client.get_project_notes(project.id)
        self.logger.info(f"Found {len(batch.notes)} note(s) on project {project.id}")
        return build_project_notes(project, match, batch)

    async def project_details(
        self, jobcode_id: int | None = None, project: str | None = None
    ) -> ProjectDetails:
        """A job code, its project record and a digest of the project's notes.

        The project name must match exactly one job code.

        Raises:
            ReportError: If neither a job code id nor a project name is given.
            AmbiguousProjectError: If the name matches several job codes.
            TSheetsAPIError: If a required upstream call fails.
        """
        reference = ProjectReference(jobcode_id=jobcode_id or None, name=project or None)
        if reference.is_empty:
            raise ReportError("Either jobcode_id or project is required")

        _, resolved = await self._resolve(reference, require_single=True)
        if not isinstance(resolved, Matched):
            return ProjectDetails(found=False, message=f"No jobcode found matching: {reference}")

        match = resolved.matches[0]
        found = first_project(await self.client.get_projects(jobcode_ids=[match.id]))
        batch = await self.client.get_project_notes(found.id) if found else None
        return build_project_details(match, found, batch)
