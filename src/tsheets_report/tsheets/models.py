"""Pydantic models for TSheets API responses."""

import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: Any) -> Any:
    """TSheets sends "" for unset timestamps and codes."""
    if value == "":
        return None
    return value


class JobCodeType(str, Enum):
    """Kinds of job code TSheets distinguishes."""

    REGULAR = "regular"
    PTO = "pto"
    PAID_BREAK = "paid_break"
    UNPAID_BREAK = "unpaid_break"
    UNPAID_TIME_OFF = "unpaid_time_off"


class JobCode(BaseModel):
    """A node in the job code (project/task) tree."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    parent_id: int | None = None
    name: str
    short_code: str | None = None
    type: JobCodeType = JobCodeType.REGULAR
    active: bool = True
    has_children: bool = False

    @field_validator("parent_id", mode="before")
    @classmethod
    def _root_parent(cls, value: Any) -> Any:
        # parent_id 0 marks a top-level job code
        if value in (0, "0", ""):
            return None
        return value

    @field_validator("short_code", mode="before")
    @classmethod
    def _empty_short_code(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @property
    def display_name(self) -> str:
        """Name followed by the short code, when there is one."""
        if self.short_code:
            return f"{self.name} {self.short_code}"
        return self.name


class User(BaseModel):
    """TSheets user (employee or vendor)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    first_name: str = ""
    last_name: str = ""
    username: str | None = None
    email: str | None = None
    employee_number: str | None = None
    active: bool = True

    @field_validator("employee_number", mode="before")
    @classmethod
    def _employee_number_as_str(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def display_name(self) -> str:
        """Get user display name."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or f"User {self.id}"


class LinkedObject(BaseModel):
    """Entity a file is attached to."""

    id: int
    type: str


class File(BaseModel):
    """File attachment metadata."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    uploaded_by_user_id: int | None = None
    file_name: str
    file_size: int = 0
    file_url: str = ""
    active: bool = True
    created: dt.datetime | None = None
    linked_objects: list[LinkedObject] = Field(default_factory=list)

    @field_validator("created", mode="before")
    @classmethod
    def _blank_created(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Timesheet(BaseModel):
    """A single logged time record."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: int
    jobcode_id: int
    start: dt.datetime | None = None
    end: dt.datetime | None = None
    duration: int = 0
    date: dt.date | None = None
    notes: str = ""
    customfields: dict[str, str] | None = None
    attached_files: list[int] = Field(default_factory=list)
    created: dt.datetime | None = None
    last_modified: dt.datetime | None = None

    @field_validator("start", "end", "date", "created", "last_modified", mode="before")
    @classmethod
    def _blank_timestamps(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _null_notes(cls, value: Any) -> Any:
        return value or ""

    @field_validator("attached_files", mode="before")
    @classmethod
    def _null_files(cls, value: Any) -> Any:
        return value or []

    @field_validator("customfields", mode="before")
    @classmethod
    def _stringify_customfields(cls, value: Any) -> Any:
        if not value:
            return None
        return {str(k): "" if v is None else str(v) for k, v in value.items()}


class TimesheetBatch(BaseModel):
    """Timesheets for a query plus the related records TSheets bundled with them."""

    entries: list[Timesheet] = Field(default_factory=list)
    supplemental_users: dict[int, User] = Field(default_factory=dict)
    supplemental_jobcodes: dict[int, JobCode] = Field(default_factory=dict)


class Project(BaseModel):
    """Project record layered on top of a job code."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    jobcode_id: int
    parent_jobcode_id: int | None = None
    name: str = ""
    status: str | None = None
    description: str | None = None
    start_date: dt.datetime | None = None
    due_date: dt.datetime | None = None
    completed_date: dt.datetime | None = None
    active: bool = True
    created: dt.datetime | None = None
    last_modified: dt.datetime | None = None

    @field_validator(
        "status",
        "description",
        "start_date",
        "due_date",
        "completed_date",
        "created",
        "last_modified",
        mode="before",
    )
    @classmethod
    def _blank_fields(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("parent_jobcode_id", mode="before")
    @classmethod
    def _root_parent(cls, value: Any) -> Any:
        if value in (0, "0", ""):
            return None
        return value


class ProjectNote(BaseModel):
    """Note posted on a project, possibly with attachments."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    project_id: int | None = None
    user_id: int
    note: str = ""
    files: list[int] = Field(default_factory=list)
    active: bool = True
    created: dt.datetime | None = None
    last_modified: dt.datetime | None = None

    @field_validator("note", mode="before")
    @classmethod
    def _null_note(cls, value: Any) -> Any:
        return value or ""

    @field_validator("files", mode="before")
    @classmethod
    def _null_files(cls, value: Any) -> Any:
        return value or []

    @field_validator("created", "last_modified", mode="before")
    @classmethod
    def _blank_timestamps(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ProjectNotesBatch(BaseModel):
    """Notes for one project with their authors and attachments."""

    notes: list[ProjectNote] = Field(default_factory=list)
    supplemental_users: dict[int, User] = Field(default_factory=dict)
    supplemental_files: dict[int, File] = Field(default_factory=dict)


class ProjectReportTotals(BaseModel):
    """Hours per user and per job code from the project report endpoint."""

    start_date: dt.date | None = None
    end_date: dt.date | None = None
    user_totals: dict[int, float] = Field(default_factory=dict)
    jobcode_totals: dict[int, float] = Field(default_factory=dict)
    supplemental_users: dict[int, User] = Field(default_factory=dict)
    supplemental_jobcodes: dict[int, JobCode] = Field(default_factory=dict)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("user_totals", "jobcode_totals", mode="before")
    @classmethod
    def _empty_totals(cls, value: Any) -> Any:
        # Hours arrive as strings ("8.5") keyed by id; an empty map comes back as []
        return value or {}


class TSheetsResponse(BaseModel):
    """Envelope shared by every TSheets list endpoint."""

    results: dict[str, Any] = Field(default_factory=dict)
    supplemental_data: dict[str, Any] = Field(default_factory=dict)
    more: bool = False

    @field_validator("results", "supplemental_data", mode="before")
    @classmethod
    def _null_sections(cls, value: Any) -> Any:
        return value or {}

    @staticmethod
    def _items(section: Any) -> list[dict[str, Any]]:
        # TSheets returns [] when a keyed collection is empty, {} when populated
        if not section:
            return []
        if isinstance(section, list):
            return list(section)
        return list(section.values())

    def records(self, key: str) -> list[dict[str, Any]]:
        """Raw records under results[key]."""
        return self._items(self.results.get(key))

    def supplemental(self, key: str) -> list[dict[str, Any]]:
        """Raw records under supplemental_data[key]."""
        return self._items(self.supplemental_data.get(key))
