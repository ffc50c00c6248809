"""Group enriched timesheets into a shift-accounting report."""

import datetime as dt
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tsheets_report.report.hierarchy import UNKNOWN
from tsheets_report.report.pipeline import ALL_JOBS, EnrichedTimesheet

CENT = Decimal("0.01")


def split_duration(seconds: int) -> tuple[int, int]:
    """Split a duration into whole hours and rounded minutes.

    Minutes round half up; a remainder that rounds to 60 carries into the hour,
    so 2h59m45s becomes (3, 0), never (2, 60).
    """
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes = (remainder + 30) // 60
    if minutes == 60:
        hours += 1
        minutes = 0
    return hours, minutes


def to_decimal_hours(hours: int, minutes: int) -> Decimal:
    """hours + minutes/60, rounded half up to cents.

    Minutes may exceed 59, so totals can be passed as (0, total_minutes).
    """
    return (Decimal(hours) + Decimal(minutes) / Decimal(60)).quantize(CENT, rounding=ROUND_HALF_UP)


class ReportModel(BaseModel):
    """Report records serialize with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AggregatedEntry(ReportModel):
    """One report row per timesheet."""

    timesheet_id: int | None = None
    date: str
    employee_name: str
    job_name: str
    cost_code: str | None = None
    hours: float
    decimal_hours: str
    notes: str = ""
    files: list[str] = Field(default_factory=list)


class EmployeeSummary(ReportModel):
    name: str
    total_hours: float
    entries: list[AggregatedEntry] = Field(default_factory=list)


class DailySummary(ReportModel):
    date: str
    total_hours: float
    entries: list[AggregatedEntry] = Field(default_factory=list)


class ShiftReport(ReportModel):
    """Entries sorted by date and employee, with per-employee and per-day totals."""

    job_name: str = ALL_JOBS
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    message: str | None = None
    total_hours: float = 0.0
    total_entries: int = 0
    entries: list[AggregatedEntry] = Field(default_factory=list)
    employee_summaries: list[EmployeeSummary] = Field(default_factory=list)
    daily_summaries: list[DailySummary] = Field(default_factory=list)


def _to_entry(timesheet: EnrichedTimesheet) -> tuple[AggregatedEntry, int]:
    hours, minutes = split_duration(timesheet.duration)
    amount = to_decimal_hours(hours, minutes)
    entry = AggregatedEntry(
        timesheet_id=timesheet.id,
        date=timesheet.date.isoformat() if timesheet.date else UNKNOWN,
        employee_name=timesheet.employee_name.strip() or UNKNOWN,
        job_name=timesheet.job_path or UNKNOWN,
        cost_code=timesheet.jobcode.short_code if timesheet.jobcode else None,
        hours=float(amount),
        decimal_hours=f"{amount:.2f}",
        notes=timesheet.notes,
        files=[f.file_name for f in timesheet.files],
    )
    return entry, hours * 60 + minutes


def _total(rows: list[tuple[AggregatedEntry, int]]) -> float:
    return float(to_decimal_hours(0, sum(minutes for _, minutes in rows)))


def aggregate(
    timesheets: Iterable[EnrichedTimesheet],
    job_name: str = ALL_JOBS,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    message: str | None = None,
) -> ShiftReport:
    """Build the shift report for a set of enriched timesheets.

    Each total sums the entries' exact minutes and rounds to cents once, so
    displayed entry hours may differ from a total by at most a cent or two
    but totals never drift as entries accumulate.

    Args:
        timesheets: Enriched timesheets in any order.
        job_name: Report heading.
        start_date: First day of the reported range.
        end_date: Last day of the reported range.
        message: Notice shown with the report, e.g. for an unmatched project.

    Returns:
        The aggregated report.
    """
    rows = [_to_entry(ts) for ts in timesheets]
    # "Unknown" dates sort after ISO dates
    rows.sort(key=lambda row: (row[0].date, row[0].employee_name.casefold(), row[0].employee_name))

    by_employee: dict[str, list[tuple[AggregatedEntry, int]]] = {}
    by_date: dict[str, list[tuple[AggregatedEntry, int]]] = {}
    for row in rows:
        by_employee.setdefault(row[0].employee_name, []).append(row)
        by_date.setdefault(row[0].date, []).append(row)

    return ShiftReport(
        job_name=job_name,
        start_date=start_date,
        end_date=end_date,
        message=message,
        total_hours=_total(rows),
        total_entries=len(rows),
        entries=[entry for entry, _ in rows],
        employee_summaries=[
            EmployeeSummary(
                name=name,
                total_hours=_total(group),
                entries=[entry for entry, _ in group],
            )
            for name, group in by_employee.items()
        ],
        daily_summaries=[
            DailySummary(
                date=day,
                total_hours=_total(group),
                entries=[entry for entry, _ in group],
            )
            for day, group in by_date.items()
        ],
    )
