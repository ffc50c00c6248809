"""Project resolution, enrichment and aggregation for timesheet reports."""

from tsheets_report.report.aggregator import ShiftReport, aggregate, split_duration
from tsheets_report.report.directory import JobcodeDirectory
from tsheets_report.report.formatters import ExportFormat, format_report
from tsheets_report.report.hierarchy import build_path
from tsheets_report.report.pipeline import EnrichedTimesheet, EnrichmentResult, TimesheetPipeline
from tsheets_report.report.projects import ProjectDetails, ProjectNotes, ProjectSummary
from tsheets_report.report.resolver import ProjectReference, resolve, search_jobcodes
from tsheets_report.report.service import ReportService

__all__ = [
    "JobcodeDirectory",
    "build_path",
    "ProjectReference",
    "resolve",
    "search_jobcodes",
    "TimesheetPipeline",
    "EnrichedTimesheet",
    "EnrichmentResult",
    "ShiftReport",
    "aggregate",
    "split_duration",
    "ExportFormat",
    "format_report",
    "ReportService",
    "ProjectSummary",
    "ProjectNotes",
    "ProjectDetails",
]
