"""Render a ShiftReport as text, markdown, CSV or JSON."""

import csv
import io
import json
from enum import Enum

from tsheets_report.report.aggregator import ShiftReport

CSV_HEADER = ["Date", "Employee", "Job", "Hours", "Notes"]
RULE = "=" * 41


class ExportFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    MARKDOWN = "markdown"
    CSV = "csv"
    JSON = "json"


def _date_range(report: ShiftReport) -> str:
    start = report.start_date.isoformat() if report.start_date else ""
    end = report.end_date.isoformat() if report.end_date else ""
    return f"{start} - {end}"


def format_text(report: ShiftReport) -> str:
    """Plain text grouped by day, then per-employee totals."""
    lines = [
        f"JOB: {report.job_name}",
        f"DATE RANGE: {_date_range(report)}",
        f"TOTAL HOURS: {report.total_hours:.2f}",
        "",
        RULE,
        "",
    ]
    if report.message:
        lines[3:3] = ["", f"NOTE: {report.message}"]

    for daily in report.daily_summaries:
        lines.append(f"DATE: {daily.date}")
        lines.append("-" * 40)
        for entry in daily.entries:
            lines.append(f"{entry.employee_name} - {entry.decimal_hours} hrs")
            if entry.notes:
                lines.append(f"  Notes: {entry.notes}")
        lines.append("")

    lines.extend([RULE, "EMPLOYEE SUMMARIES", RULE, ""])
    for employee in report.employee_summaries:
        lines.append(f"{employee.name}: {employee.total_hours:.2f} hours")

    return "\n".join(lines)


def format_markdown(report: ShiftReport) -> str:
    lines = [
        f"# {report.job_name}",
        "",
        f"**Date Range:** {_date_range(report)}",
        f"**Total Hours:** {report.total_hours:.2f}",
        f"**Total Entries:** {report.total_entries}",
        "",
        "---",
        "",
        "## Daily Breakdown",
        "",
    ]
    if report.message:
        lines[5:5] = ["", f"> **Note:** {report.message}"]

    for daily in report.daily_summaries:
        lines.append(f"### {daily.date}")
        lines.append("")
        for entry in daily.entries:
            lines.append(f"- **{entry.employee_name}** - {entry.decimal_hours} hrs")
            if entry.notes:
                lines.append(f"  - _Notes:_ {entry.notes}")
        lines.append("")

    lines.extend(["---", "", "## Employee Summaries", ""])
    for employee in report.employee_summaries:
        lines.append(f"- **{employee.name}:** {employee.total_hours:.2f} hours")

    return "\n".join(lines)


def format_csv(report: ShiftReport) -> str:
    """One quoted row per entry, in report order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in report.entries:
        writer.writerow(
            [entry.date, entry.employee_name, entry.job_name, entry.decimal_hours, entry.notes]
        )
    return buffer.getvalue().rstrip("\n")


def format_json(report: ShiftReport) -> str:
    return json.dumps(report.model_dump(mode="json", by_alias=True), indent=2)


def format_report(report: ShiftReport, fmt: ExportFormat | str = ExportFormat.JSON) -> str:
    """Render a report in the requested format.

    Raises:
        ValueError: If the format is not supported.
    """
    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.TEXT:
        return format_text(report)
    if fmt is ExportFormat.MARKDOWN:
        return format_markdown(report)
    if fmt is ExportFormat.CSV:
        return format_csv(report)
    return format_json(report)
