"""TSheets API integration."""

from tsheets_report.tsheets.auth import StoredToken, TokenStore
from tsheets_report.tsheets.client import TSheetsClient
from tsheets_report.tsheets.models import (
    File,
    JobCode,
    JobCodeType,
    LinkedObject,
    Project,
    ProjectNote,
    ProjectNotesBatch,
    ProjectReportTotals,
    Timesheet,
    TimesheetBatch,
    User,
)

__all__ = [
    "TSheetsClient",
    "TokenStore",
    "StoredToken",
    "JobCode",
    "JobCodeType",
    "Timesheet",
    "TimesheetBatch",
    "User",
    "File",
    "LinkedObject",
    "Project",
    "ProjectNote",
    "ProjectNotesBatch",
    "ProjectReportTotals",
]
