"""TSheets API client with pagination, id batching and retry support."""

import asyncio
import logging
from collections.abc import Iterable, Iterator
from datetime import date
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from tsheets_report.config import DEFAULT_BASE_URL, DEFAULT_PAGE_LIMIT, DEFAULT_TIMEOUT, Config
from tsheets_report.errors import AuthenticationError, MalformedResponseError, TSheetsAPIError
from tsheets_report.tsheets.auth import StoredToken, TokenStore
from tsheets_report.tsheets.models import (
    File,
    JobCode,
    Project,
    ProjectNote,
    ProjectNotesBatch,
    ProjectReportTotals,
    Timesheet,
    TimesheetBatch,
    TSheetsResponse,
    User,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_IDS_PER_REQUEST = 200
MAX_PAGES = 500
RETRY_DELAY_SECONDS = 2.0


def _chunks(ids: Iterable[int], size: int = MAX_IDS_PER_REQUEST) -> Iterator[list[int]]:
    ordered = sorted(set(ids))
    for i in range(0, len(ordered), size):
        yield ordered[i : i + size]


class TSheetsClient:
    """Async client for the TSheets REST API."""

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        """Initialize TSheets client.

        Args:
            token_store: Source of the OAuth access token.
            base_url: API base URL.
            timeout: Per-request timeout in seconds.
            page_limit: Records requested per page.
            transport: Optional httpx transport (used by tests).
            retry_delay: Seconds to wait before the single retry.
        """
        self.token_store = token_store
        self._token: StoredToken | None = None
        self.page_limit = page_limit
        self.retry_delay = retry_delay
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Config) -> "TSheetsClient":
        """Build a client from application configuration."""
        return cls(
            token_store=TokenStore(config.token_file),
            base_url=config.base_url,
            timeout=config.timeout,
            page_limit=config.page_limit,
        )

    def _get_auth_headers(self, operation: str) -> dict[str, str]:
        # Read the token file once; only re-read when the cached token expires
        if self._token is None or self._token.is_expired():
            self._token = self.token_store.load()
        if self._token is None:
            raise AuthenticationError(
                operation, "no valid access token available. Run authentication first."
            )
        return {"Authorization": f"Bearer {self._token.access_token}"}

    async def _request(
        self, operation: str, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """Make an HTTP request with retry-once on 5xx/network errors.

        Raises:
            TSheetsAPIError: If the request still fails.
        """
        headers = self._get_auth_headers(operation)
        logger.debug(f"{method} {url} {kwargs.get('params', '')}")
        response: httpx.Response | None = None
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"Network error on {operation} ({e}), retrying once...")
        else:
            if response.status_code >= 500:
                logger.warning(
                    f"Server error {response.status_code} on {operation}, retrying once..."
                )
                response = None

        if response is None:
            await asyncio.sleep(self.retry_delay)
            try:
                response = await self.client.request(method, url, headers=headers, **kwargs)
            except httpx.TransportError as e:
                raise TSheetsAPIError(operation, f"network error: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(operation, "access token rejected (401)", status_code=401)
        if response.is_error:
            raise TSheetsAPIError(
                operation,
                f"{response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response

    async def _get_pages(
        self, operation: str, endpoint: str, params: dict[str, Any]
    ) -> list[TSheetsResponse]:
        """GET every page of a list endpoint."""
        pages: list[TSheetsResponse] = []
        page = 1
        while page <= MAX_PAGES:
            response = await self._request(
                operation,
                "GET",
                endpoint,
                params={**params, "page": page, "limit": self.page_limit},
            )
            try:
                envelope = TSheetsResponse.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise MalformedResponseError(operation, f"unexpected response: {e}") from e
            pages.append(envelope)
            if not envelope.more:
                break
            page += 1
        else:
            logger.warning(f"{operation}: stopped after {MAX_PAGES} pages")
        return pages

    def _parse_records(
        self, operation: str, model: type[ModelT], items: Iterable[dict[str, Any]]
    ) -> dict[int, ModelT]:
        """Validate records one at a time, skipping malformed ones."""
        records: dict[int, ModelT] = {}
        for item in items:
            try:
                record = model.model_validate(item)
            except ValidationError as e:
                record_id = item.get("id") if isinstance(item, dict) else None
                logger.warning(
                    f"{operation}: skipping malformed {model.__name__} {record_id}: "
                    f"{e.error_count()} validation error(s)"
                )
                continue
            records[record.id] = record  # type: ignore[attr-defined]
        return records

    async def get_jobcodes(self, active: str = "both") -> dict[int, JobCode]:
        """List every job code.

        Args:
            active: "yes", "no" or "both".

        Returns:
            Job codes keyed by id.

        Raises:
            TSheetsAPIError: If API request fails.
        """
        pages = await self._get_pages("get_jobcodes", "/jobcodes", {"active": active})
        jobcodes: dict[int, JobCode] = {}
        for envelope in pages:
            jobcodes.update(
                self._parse_records("get_jobcodes", JobCode, envelope.records("jobcodes"))
            )
        return jobcodes

    async def get_jobcodes_by_id(self, ids: Iterable[int]) -> dict[int, JobCode]:
        """Fetch specific job codes, batching ids into as few calls as possible."""
        jobcodes: dict[int, JobCode] = {}
        for batch in _chunks(ids):
            pages = await self._get_pages(
                "get_jobcodes_by_id",
                "/jobcodes",
                {"ids": ",".join(map(str, batch)), "active": "both"},
            )
            for envelope in pages:
                jobcodes.update(
                    self._parse_records(
                        "get_jobcodes_by_id", JobCode, envelope.records("jobcodes")
                    )
                )
        return jobcodes

    async def get_timesheets(
        self,
        start_date: date,
        end_date: date,
        jobcode_ids: Iterable[int] | None = None,
    ) -> TimesheetBatch:
        """Get timesheets for a date range, optionally limited to job codes.

        Args:
            start_date: First day (inclusive).
            end_date: Last day (inclusive).
            jobcode_ids: Only timesheets logged against these job codes.

        Returns:
            Timesheets plus any users/job codes bundled as supplemental data.

        Raises:
            TSheetsAPIError: If API request fails.
        """
        base_params: dict[str, Any] = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "supplemental_data": "yes",
        }
        if jobcode_ids is None:
            param_sets = [base_params]
        else:
            param_sets = [
                {**base_params, "jobcode_ids": ",".join(map(str, batch))}
                for batch in _chunks(jobcode_ids)
            ]

        entries: dict[int, Timesheet] = {}
        batch = TimesheetBatch()
        for params in param_sets:
            for envelope in await self._get_pages("get_timesheets", "/timesheets", params):
                entries.update(
                    self._parse_records("get_timesheets", Timesheet, envelope.records("timesheets"))
                )
                batch.supplemental_users.update(
                    self._parse_records("get_timesheets", User, envelope.supplemental("users"))
                )
                batch.supplemental_jobcodes.update(
                    self._parse_records(
                        "get_timesheets", JobCode, envelope.supplemental("jobcodes")
                    )
                )
        batch.entries = [entries[ts_id] for ts_id in sorted(entries)]
        return batch

    async def get_users(self, ids: Iterable[int]) -> dict[int, User]:
        """Fetch users (active and inactive) by id."""
        users: dict[int, User] = {}
        for batch in _chunks(ids):
            pages = await self._get_pages(
                "get_users", "/users", {"ids": ",".join(map(str, batch)), "active": "both"}
            )
            for envelope in pages:
                users.update(self._parse_records("get_users", User, envelope.records("users")))
        return users

    async def get_files(self, ids: Iterable[int]) -> dict[int, File]:
        """Fetch file attachment metadata by id."""
        files: dict[int, File] = {}
        for batch in _chunks(ids):
            pages = await self._get_pages(
                "get_files", "/files", {"ids": ",".join(map(str, batch))}
            )
            for envelope in pages:
                files.update(self._parse_records("get_files", File, envelope.records("files")))
        return files

    async def get_projects(
        self,
        jobcode_ids: Iterable[int] | None = None,
        ids: Iterable[int] | None = None,
    ) -> dict[int, Project]:
        """Fetch projects by their job code ids or by project id.

        Args:
            jobcode_ids: Job codes whose projects to return.
            ids: Project ids.

        Returns:
            Projects keyed by project id.

        Raises:
            TSheetsAPIError: If API request fails.
        """
        param_sets: list[dict[str, Any]] = []
        if jobcode_ids is not None:
            param_sets += [{"jobcode_ids": ",".join(map(str, b))} for b in _chunks(jobcode_ids)]
        if ids is not None:
            param_sets += [{"ids": ",".join(map(str, b))} for b in _chunks(ids)]

        projects: dict[int, Project] = {}
        for params in param_sets:
            for envelope in await self._get_pages("get_projects", "/projects", params):
                projects.update(
                    self._parse_records("get_projects", Project, envelope.records("projects"))
                )
        return projects

    async def get_project_notes(self, project_id: int) -> ProjectNotesBatch:
        """Get the notes on a project with their authors and files."""
        batch = ProjectNotesBatch()
        notes: dict[int, ProjectNote] = {}
        params = {"project_id": project_id, "supplemental_data": "yes"}
        for envelope in await self._get_pages("get_project_notes", "/project_notes", params):
            notes.update(
                self._parse_records(
                    "get_project_notes", ProjectNote, envelope.records("project_notes")
                )
            )
            batch.supplemental_users.update(
                self._parse_records("get_project_notes", User, envelope.supplemental("users"))
            )
            batch.supplemental_files.update(
                self._parse_records("get_project_notes", File, envelope.supplemental("files"))
            )
        batch.notes = [notes[note_id] for note_id in sorted(notes)]
        return batch

    async def get_project_report(
        self,
        start_date: date,
        end_date: date,
        jobcode_ids: Iterable[int] | None = None,
    ) -> ProjectReportTotals:
        """Get TSheets' own per-user and per-job code hour totals.

        Args:
            start_date: First day (inclusive).
            end_date: Last day (inclusive).
            jobcode_ids: Only count time on these job codes.

        Returns:
            Totals plus the users and job codes TSheets bundled with them.

        Raises:
            TSheetsAPIError: If API request fails.
        """
        operation = "get_project_report"
        data: dict[str, Any] = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }
        if jobcode_ids is not None:
            data["jobcode_ids"] = sorted(set(jobcode_ids))

        response = await self._request(
            operation, "POST", "/reports/project", json={"data": data}
        )
        try:
            envelope = TSheetsResponse.model_validate(response.json())
            report = envelope.results.get("project_report") or {}
            totals = report.get("totals") or {}
            result = ProjectReportTotals(
                start_date=report.get("start_date"),
                end_date=report.get("end_date"),
                user_totals=totals.get("users"),
                jobcode_totals=totals.get("jobcodes"),
            )
        except (ValueError, AttributeError, ValidationError) as e:
            raise MalformedResponseError(operation, f"unexpected response: {e}") from e

        result.supplemental_users = self._parse_records(
            operation, User, envelope.supplemental("users")
        )
        result.supplemental_jobcodes = self._parse_records(
            operation, JobCode, envelope.supplemental("jobcodes")
        )
        return result

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "TSheetsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
