"""Project notes, project details and TSheets-computed hour summaries."""

import datetime as dt
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from pydantic import BaseModel, Field

from tsheets_report.report.aggregator import CENT, ReportModel
from tsheets_report.report.pipeline import ALL_JOBS, TimesheetSource
from tsheets_report.report.resolver import JobcodeMatch
from tsheets_report.tsheets.models import (
    Project,
    ProjectNote,
    ProjectNotesBatch,
    ProjectReportTotals,
)

UNKNOWN_FILE = "(unknown)"
NO_PROJECT_MESSAGE = (
    "This jobcode does not have an associated project. Project notes are not available."
)


class ProjectSource(TimesheetSource, Protocol):
    """API client operations for projects, notes and report totals."""

    async def get_projects(
        self, jobcode_ids: Iterable[int] | None = None, ids: Iterable[int] | None = None
    ) -> dict[int, Project]: ...

    async def get_project_notes(self, project_id: int) -> ProjectNotesBatch: ...

    async def get_project_report(
        self, start_date: dt.date, end_date: dt.date, jobcode_ids: Iterable[int] | None = None
    ) -> ProjectReportTotals: ...


class NoteAuthor(BaseModel):
    user_id: int
    name: str
    email: str | None = None


class NoteFile(BaseModel):
    id: int
    file_name: str
    size: int | None = None


class ProjectNoteView(BaseModel):
    """A project note with its author and attachments resolved."""

    id: int
    note: str
    created_by: NoteAuthor
    created: dt.datetime | None = None
    last_modified: dt.datetime | None = None
    files: list[NoteFile] = Field(default_factory=list)


class ProjectNotes(BaseModel):
    """Notes on a project, newest first."""

    project: Project | None = None
    jobcode: JobcodeMatch | None = None
    notes: list[ProjectNoteView] = Field(default_factory=list)
    total_notes: int = 0
    total_files: int = 0
    message: str | None = None


class NoteSummary(BaseModel):
    id: int
    note: str
    author: str
    created: dt.datetime | None = None
    file_count: int = 0


class ProjectDetails(BaseModel):
    """A job code, its project record and a digest of the project's notes."""

    found: bool = True
    jobcode: JobcodeMatch | None = None
    project: Project | None = None
    notes: list[NoteSummary] = Field(default_factory=list)
    total_notes: int = 0
    total_files: int = 0
    message: str | None = None


class UserTotal(ReportModel):
    user_id: int
    user_name: str
    hours: float


class JobcodeTotal(ReportModel):
    jobcode_id: int
    jobcode_name: str
    hours: float


class ProjectSummary(ReportModel):
    """Hours per employee and per job code as totalled by TSheets."""

    job_name: str = ALL_JOBS
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    message: str | None = None
    total_hours: float = 0.0
    user_totals: list[UserTotal] = Field(default_factory=list)
    jobcode_totals: list[JobcodeTotal] = Field(default_factory=list)


def first_project(projects: dict[int, Project]) -> Project | None:
    """Lowest-id project, so repeated lookups pick the same one."""
    return projects[min(projects)] if projects else None


def _author(note: ProjectNote, batch: ProjectNotesBatch) -> NoteAuthor:
    user = batch.supplemental_users.get(note.user_id)
    if user is None:
        return NoteAuthor(user_id=note.user_id, name=f"User {note.user_id}")
    return NoteAuthor(user_id=note.user_id, name=user.display_name, email=user.email)


def _note_file(file_id: int, batch: ProjectNotesBatch) -> NoteFile:
    file = batch.supplemental_files.get(file_id)
    if file is None:
        return NoteFile(id=file_id, file_name=UNKNOWN_FILE)
    return NoteFile(id=file.id, file_name=file.file_name, size=file.file_size or None)


def _newest_first(notes: Iterable[ProjectNote]) -> list[ProjectNote]:
    # Notes without a timestamp go last, ties stay in id order
    by_id = sorted(notes, key=lambda n: n.id)
    return sorted(
        by_id,
        key=lambda n: n.created.timestamp() if n.created else float("-inf"),
        reverse=True,
    )


def build_note_views(batch: ProjectNotesBatch) -> list[ProjectNoteView]:
    """Attach authors and files to each note, newest first."""
    return [
        ProjectNoteView(
            id=note.id,
            note=note.note,
            created_by=_author(note, batch),
            created=note.created,
            last_modified=note.last_modified,
            files=[_note_file(fid, batch) for fid in note.files],
        )
        for note in _newest_first(batch.notes)
    ]


def build_project_notes(
    project: Project, jobcode: JobcodeMatch | None, batch: ProjectNotesBatch
) -> ProjectNotes:
    views = build_note_views(batch)
    return ProjectNotes(
        project=project,
        jobcode=jobcode,
        notes=views,
        total_notes=len(views),
        total_files=sum(len(view.files) for view in views),
    )


def build_project_details(
    jobcode: JobcodeMatch, project: Project | None, batch: ProjectNotesBatch | None
) -> ProjectDetails:
    """Combine a job code with its project and a short form of each note."""
    if project is None or batch is None:
        return ProjectDetails(jobcode=jobcode, project=project, message=NO_PROJECT_MESSAGE)

    summaries = [
        NoteSummary(
            id=view.id,
            note=view.note,
            author=view.created_by.name,
            created=view.created,
            file_count=len(view.files),
        )
        for view in build_note_views(batch)
    ]
    return ProjectDetails(
        jobcode=jobcode,
        project=project,
        notes=summaries,
        total_notes=len(summaries),
        total_files=sum(s.file_count for s in summaries),
    )


def summarize_totals(
    totals: ProjectReportTotals,
    job_name: str = ALL_JOBS,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
) -> ProjectSummary:
    """Name the per-user and per-job code totals from a project report.

    Names come from the report's supplemental data; ids TSheets did not
    describe are shown as "User <id>" or "Jobcode <id>". The grand total is
    the sum of the user totals, rounded to cents once.
    """
    users = [
        UserTotal(
            user_id=user_id,
            user_name=(
                totals.supplemental_users[user_id].display_name
                if user_id in totals.supplemental_users
                else f"User {user_id}"
            ),
            hours=hours,
        )
        for user_id, hours in totals.user_totals.items()
    ]
    jobcodes = [
        JobcodeTotal(
            jobcode_id=jobcode_id,
            jobcode_name=(
                totals.supplemental_jobcodes[jobcode_id].name
                if jobcode_id in totals.supplemental_jobcodes
                else f"Jobcode {jobcode_id}"
            ),
            hours=hours,
        )
        for jobcode_id, hours in totals.jobcode_totals.items()
    ]
    users.sort(key=lambda u: (u.user_name.casefold(), u.user_id))
    jobcodes.sort(key=lambda j: (j.jobcode_name.casefold(), j.jobcode_id))

    total = sum((Decimal(str(u.hours)) for u in users), Decimal(0))
    return ProjectSummary(
        job_name=job_name,
        start_date=totals.start_date or start_date,
        end_date=totals.end_date or end_date,
        total_hours=float(total.quantize(CENT, rounding=ROUND_HALF_UP)),
        user_totals=users,
        jobcode_totals=jobcodes,
    )
