"""Fetch timesheets and enrich them with users, job codes and attachments."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from pydantic import Field

from tsheets_report.errors import AmbiguousProjectError
from tsheets_report.report.directory import MAX_HIERARCHY_DEPTH, JobcodeDirectory
from tsheets_report.report.hierarchy import UNKNOWN, build_path
from tsheets_report.report.resolver import (
    Ambiguous,
    Matched,
    NotFound,
    ProjectReference,
    ResolvedFilter,
    resolve,
)
from tsheets_report.tsheets.models import File, JobCode, Timesheet, TimesheetBatch, User

module_logger = logging.getLogger(__name__)

ALL_JOBS = "All Jobs"


class TimesheetSource(Protocol):
    """API client operations the pipeline depends on."""

    async def get_jobcodes(self, active: str = "both") -> dict[int, JobCode]: ...

    async def get_jobcodes_by_id(self, ids: Iterable[int]) -> dict[int, JobCode]: ...

    async def get_timesheets(
        self, start_date: date, end_date: date, jobcode_ids: Iterable[int] | None = None
    ) -> TimesheetBatch: ...

    async def get_users(self, ids: Iterable[int]) -> dict[int, User]: ...

    async def get_files(self, ids: Iterable[int]) -> dict[int, File]: ...


class EnrichedTimesheet(Timesheet):
    """Timesheet with its user, job code, hierarchy path and attachments."""

    user: User | None = None
    jobcode: JobCode | None = None
    job_path: str = UNKNOWN
    files: list[File] = Field(default_factory=list)

    @property
    def employee_name(self) -> str:
        return self.user.display_name if self.user else UNKNOWN


@dataclass
class EnrichmentResult:
    """Output of one pipeline run."""

    start_date: date
    end_date: date
    resolved: ResolvedFilter
    entries: list[EnrichedTimesheet] = field(default_factory=list)

    @property
    def job_name(self) -> str:
        """Name to head the report with."""
        if isinstance(self.resolved, Matched):
            return self.resolved.display_name
        if isinstance(self.resolved, NotFound):
            return str(self.resolved.reference)
        return ALL_JOBS

    @property
    def message(self) -> str | None:
        """Notice for a reference that matched no job code."""
        if isinstance(self.resolved, NotFound):
            return f"No jobcode found matching: {self.resolved.reference}"
        return None


class TimesheetPipeline:
    """Resolves the project filter and assembles enriched timesheets."""

    def __init__(self, client: TimesheetSource, logger: logging.Logger | None = None) -> None:
        """Initialize pipeline.

        Args:
            client: TSheets API client.
            logger: Logger for diagnostics. Defaults to the module logger.
        """
        self.client = client
        self.logger = logger or module_logger

    async def get_enriched_timesheets(
        self,
        start_date: date,
        end_date: date,
        reference: ProjectReference | None = None,
        require_single: bool = False,
    ) -> EnrichmentResult:
        """Load job codes, resolve the project reference and enrich its timesheets.

        A reference that matches nothing gives an empty result, not an error.

        Args:
            start_date: First day (inclusive).
            end_date: Last day (inclusive).
            reference: Optional project reference.
            require_single: Treat several name matches as ambiguous.

        Returns:
            Enrichment result, possibly with no entries.

        Raises:
            AmbiguousProjectError: If require_single and several job codes match.
            TSheetsAPIError: If the job code or timesheet listing fails.
        """
        self.logger.info(
            f"Getting timesheets from {start_date} to {end_date}"
            + (f' (project "{reference}")' if reference and not reference.is_empty else "")
        )
        directory = await JobcodeDirectory.load(self.client, logger=self.logger)
        resolved = resolve(reference, directory, require_single=require_single, logger=self.logger)

        if isinstance(resolved, Ambiguous):
            raise AmbiguousProjectError(str(resolved.reference), list(resolved.candidates))
        if isinstance(resolved, NotFound):
            return EnrichmentResult(start_date=start_date, end_date=end_date, resolved=resolved)

        return await self.enrich(start_date, end_date, resolved, directory)

    async def enrich(
        self,
        start_date: date,
        end_date: date,
        resolved: ResolvedFilter,
        directory: JobcodeDirectory,
    ) -> EnrichmentResult:
        """Fetch and enrich timesheets for an already resolved filter.

        Raises:
            TSheetsAPIError: If the timesheet listing fails.
        """
        result = EnrichmentResult(start_date=start_date, end_date=end_date, resolved=resolved)
        if isinstance(resolved, (NotFound, Ambiguous)):
            return result

        jobcode_ids = resolved.ids if isinstance(resolved, Matched) else None
        batch = await self.client.get_timesheets(start_date, end_date, jobcode_ids=jobcode_ids)
        self.logger.info(f"Found {len(batch.entries)} timesheet entries")
        if not batch.entries:
            return result

        users = await self._resolve_users(batch)
        await self._backfill_jobcodes(batch, directory)
        files = await self._fetch_files(batch.entries)

        paths: dict[int, str] = {}
        for timesheet in sorted(batch.entries, key=lambda ts: ts.id):
            jobcode = directory.get(timesheet.jobcode_id)
            if timesheet.jobcode_id not in paths:
                paths[timesheet.jobcode_id] = build_path(jobcode, directory, logger=self.logger)
            if timesheet.user_id not in users:
                self.logger.warning(f"Unknown user {timesheet.user_id} on timesheet {timesheet.id}")

            result.entries.append(
                EnrichedTimesheet(
                    **timesheet.model_dump(),
                    user=users.get(timesheet.user_id),
                    jobcode=jobcode,
                    job_path=paths[timesheet.jobcode_id],
                    files=[files[fid] for fid in timesheet.attached_files if fid in files],
                )
            )
        return result

    async def _resolve_users(self, batch: TimesheetBatch) -> dict[int, User]:
        """Users for the batch, from supplemental data first, then a lookup."""
        user_ids = {ts.user_id for ts in batch.entries}
        users = {uid: user for uid, user in batch.supplemental_users.items() if uid in user_ids}
        missing = user_ids - users.keys()
        if not missing:
            return users

        self.logger.info(f"Fetching {len(missing)} user(s) not in supplemental data")
        try:
            users.update(await self.client.get_users(missing))
        except Exception as e:
            self.logger.warning(f"Error fetching users, continuing without names: {e}")
        return users

    async def _backfill_jobcodes(
        self, batch: TimesheetBatch, directory: JobcodeDirectory
    ) -> None:
        """Fill in job codes (and their parents) the bulk listing left out."""
        directory.add(batch.supplemental_jobcodes.values())
        referenced = {ts.jobcode_id for ts in batch.entries}

        attempted: set[int] = set()
        for _ in range(MAX_HIERARCHY_DEPTH):
            missing = directory.missing_ancestors(referenced) - attempted
            if not missing:
                return
            attempted |= missing
            try:
                await directory.ensure(missing, self.client)
            except Exception as e:
                self.logger.warning(f"Error backfilling jobcodes, paths may be partial: {e}")
                return

    async def _fetch_files(self, timesheets: list[Timesheet]) -> dict[int, File]:
        """Attachment metadata; failures leave the map empty."""
        file_ids = {fid for ts in timesheets for fid in ts.attached_files}
        if not file_ids:
            return {}

        self.logger.info(f"Fetching {len(file_ids)} file(s)...")
        try:
            return await self.client.get_files(file_ids)
        except Exception as e:
            self.logger.error(f"Error fetching files, continuing without attachments: {e}")
            return {}
